from __future__ import annotations

from dataclasses import dataclass, field

from swap_indexer.domain.services.addresses import ZERO_ADDRESS


@dataclass(frozen=True)
class ChainConfig:
    key: str
    chain_id: int
    name: str
    rpc_url: str
    factory_address: str
    token_list_path: str
    known_routers: frozenset[str] = field(default_factory=frozenset)
    from_block: int = 0

    @property
    def enabled(self) -> bool:
        return bool(self.rpc_url) and self.factory_address.lower() != ZERO_ADDRESS
