from __future__ import annotations

from dataclasses import dataclass

from swap_indexer.domain.entities.pool import PoolRecord
from swap_indexer.domain.entities.token import TokenUniverse


@dataclass(frozen=True)
class HarvestSwapsInput:
    chain_id: int
    pool: PoolRecord
    token_universe: TokenUniverse
    known_routers: frozenset[str]
    from_block: int
    to_block: int


@dataclass(frozen=True)
class HarvestSwapsOutput:
    fetched: int = 0
    persisted: int = 0
    duplicates: int = 0
    malformed: int = 0
    failed: int = 0
    aggregation_failures: int = 0
