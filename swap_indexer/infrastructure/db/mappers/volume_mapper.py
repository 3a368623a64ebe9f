from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from swap_indexer.domain.entities.volume import (
    TokenAggregate,
    TokenVolumeDelta,
    UserAggregate,
    UserTokenPoolAggregate,
    VolumeDeltas,
)


def map_user_delta_to_params(deltas: VolumeDeltas) -> dict[str, Any]:
    return {
        "address": deltas.user_address.lower(),
        "chain_id": deltas.chain_id,
        "volume": Decimal(deltas.user_volume),
    }


def map_token_delta_to_params(deltas: VolumeDeltas, token: TokenVolumeDelta) -> dict[str, Any]:
    return {
        "address": token.token_address.lower(),
        "chain_id": deltas.chain_id,
        "symbol": token.symbol,
        "volume": Decimal(token.volume),
    }


def map_user_token_pool_delta_to_params(deltas: VolumeDeltas, token: TokenVolumeDelta) -> dict[str, Any]:
    return {
        "user_address": deltas.user_address.lower(),
        "token_address": token.token_address.lower(),
        "pool_address": deltas.pool_address.lower(),
        "chain_id": deltas.chain_id,
        "volume": Decimal(token.volume),
    }


def map_row_to_user_aggregate(row: Mapping[str, Any]) -> UserAggregate:
    return UserAggregate(
        address=str(row["address"]),
        chain_id=int(row["chain_id"]),
        total_volume=int(row["total_volume"]),
        total_swaps=int(row["total_swaps"]),
    )


def map_row_to_token_aggregate(row: Mapping[str, Any]) -> TokenAggregate:
    return TokenAggregate(
        address=str(row["address"]),
        chain_id=int(row["chain_id"]),
        symbol=str(row["symbol"]),
        total_volume=int(row["total_volume"]),
        total_swaps=int(row["total_swaps"]),
    )


def map_row_to_user_token_pool_aggregate(row: Mapping[str, Any]) -> UserTokenPoolAggregate:
    return UserTokenPoolAggregate(
        user_address=str(row["user_address"]),
        token_address=str(row["token_address"]),
        pool_address=str(row["pool_address"]),
        chain_id=int(row["chain_id"]),
        volume=int(row["volume"]),
        swaps=int(row["swaps"]),
    )
