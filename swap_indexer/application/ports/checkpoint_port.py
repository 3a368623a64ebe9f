from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.checkpoint import Checkpoint


class CheckpointPort(Protocol):
    def ensure(self, chain_key: str, from_block: int) -> Checkpoint:
        ...

    def read(self, chain_key: str) -> Checkpoint:
        ...

    def write(self, chain_key: str, checkpoint: Checkpoint) -> None:
        ...
