from __future__ import annotations

from dataclasses import dataclass

from swap_indexer.domain.entities.swap import SwapEvent


@dataclass(frozen=True)
class ResolveUserInput:
    event: SwapEvent
    sender: str
    known_routers: frozenset[str]
