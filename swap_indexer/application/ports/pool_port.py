from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.pool import PoolRecord


class PoolPort(Protocol):
    def upsert_pool(self, pool: PoolRecord) -> None:
        ...
