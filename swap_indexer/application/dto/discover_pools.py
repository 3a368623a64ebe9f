from __future__ import annotations

from dataclasses import dataclass

from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.entities.token import TokenListEntry, TokenUniverse


@dataclass(frozen=True)
class DiscoverPoolsInput:
    chain: ChainConfig
    candidate_tokens: tuple[TokenListEntry, ...]
    token_universe: TokenUniverse
    fee_tiers: tuple[int, ...]
