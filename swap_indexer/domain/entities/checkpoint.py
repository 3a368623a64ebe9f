from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Checkpoint:
    from_block: int


@dataclass(frozen=True)
class BlockWindowPlan:
    from_block: int
    head: int
    to_block: int | None
    fast_forwarded_from: int | None = None

    @property
    def idle(self) -> bool:
        return self.to_block is None


@dataclass(frozen=True)
class IndexingGap:
    chain_id: int
    from_block: int
    to_block: int
    reason: str
    pool_address: str | None = None
