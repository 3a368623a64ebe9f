from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.swap import SwapRecord


class SwapLedgerPort(Protocol):
    def insert_swap(self, swap: SwapRecord) -> bool:
        """Insert keyed on (transaction_hash, chain_id); False when the row already exists."""
        ...

    def sum_pool_volume(self, *, chain_id: int, pool_address: str) -> int:
        ...

    def list_swaps(self, *, chain_id: int, offset: int, limit: int) -> list[SwapRecord]:
        ...
