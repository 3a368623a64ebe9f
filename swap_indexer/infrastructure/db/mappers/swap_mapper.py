from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from swap_indexer.domain.entities.swap import SwapRecord


def _to_int(value: Any) -> int:
    if isinstance(value, Decimal):
        return int(value)
    return int(str(value))


def map_swap_record_to_params(swap: SwapRecord) -> dict[str, Any]:
    return {
        "transaction_hash": swap.transaction_hash,
        "chain_id": swap.chain_id,
        "pool_address": swap.pool_address.lower(),
        "user_address": swap.user_address.lower(),
        "token0": swap.token0.lower(),
        "token1": swap.token1.lower(),
        "amount0": Decimal(swap.amount0),
        "amount1": Decimal(swap.amount1),
        "block_number": swap.block_number,
        "timestamp": swap.timestamp,
    }


def map_row_to_swap_record(row: Mapping[str, Any]) -> SwapRecord:
    return SwapRecord(
        chain_id=int(row["chain_id"]),
        transaction_hash=str(row["transaction_hash"]),
        pool_address=str(row["pool_address"]),
        user_address=str(row["user_address"]),
        token0=str(row["token0"]),
        token1=str(row["token1"]),
        amount0=_to_int(row["amount0"]),
        amount1=_to_int(row["amount1"]),
        block_number=int(row["block_number"]),
        timestamp=row["timestamp"],
    )
