from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PoolCandidate:
    token_a: str
    token_b: str
    fee: int


@dataclass(frozen=True)
class PoolRecord:
    chain_id: int
    pool_address: str
    token0: str
    token1: str
    fee: int
    volume: int | None = None
