from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SwapEvent:
    transaction_hash: str | None
    block_number: int
    log_index: int
    sender: str | None
    recipient: str | None
    amount0: int | None
    amount1: int | None


@dataclass(frozen=True)
class SwapRecord:
    chain_id: int
    transaction_hash: str
    pool_address: str
    user_address: str
    token0: str
    token1: str
    amount0: int
    amount1: int
    block_number: int
    timestamp: datetime
