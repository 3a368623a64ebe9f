from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.entities.token import TokenUniverse


class TokenListPort(Protocol):
    def load(self, chain: ChainConfig) -> TokenUniverse:
        ...
