from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.checkpoint import IndexingGap
from swap_indexer.domain.entities.pool import PoolRecord


class IndexerObserverPort(Protocol):
    def on_pool_found(self, pool: PoolRecord) -> None:
        ...

    def on_indexing_swaps(self, *, chain_id: int, pool_address: str, from_block: int, to_block: int) -> None:
        ...

    def on_failed_update_volumes(self, *, chain_id: int, subject: str, error: str) -> None:
        ...

    def on_failed_process_swap(self, *, chain_id: int, pool_address: str, error: str) -> None:
        ...

    def on_gap_recorded(self, gap: IndexingGap) -> None:
        ...
