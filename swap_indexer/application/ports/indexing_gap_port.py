from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.checkpoint import IndexingGap


class IndexingGapPort(Protocol):
    def record_gap(self, gap: IndexingGap) -> None:
        ...
