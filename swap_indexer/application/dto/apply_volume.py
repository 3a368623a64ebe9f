from __future__ import annotations

from dataclasses import dataclass

from swap_indexer.domain.entities.token import TokenUniverse


@dataclass(frozen=True)
class ApplyVolumeInput:
    user_address: str
    token0: str
    token1: str
    amount0: int | str
    amount1: int | str
    pool_address: str
    chain_id: int | None
    token_universe: TokenUniverse


@dataclass(frozen=True)
class RebuildAggregatesInput:
    chain_id: int
    token_universe: TokenUniverse
    page_size: int = 1000


@dataclass(frozen=True)
class RebuildAggregatesOutput:
    chain_id: int
    replayed: int
    rejected: int
