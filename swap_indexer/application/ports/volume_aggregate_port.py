from __future__ import annotations

from typing import Protocol

from swap_indexer.domain.entities.volume import (
    TokenAggregate,
    UserAggregate,
    UserTokenPoolAggregate,
    VolumeDeltas,
)


class VolumeAggregatePort(Protocol):
    def apply(self, deltas: VolumeDeltas) -> None:
        ...

    def reset_chain(self, *, chain_id: int) -> None:
        ...

    def get_user_aggregate(self, *, chain_id: int, address: str) -> UserAggregate | None:
        ...

    def get_token_aggregate(self, *, chain_id: int, address: str) -> TokenAggregate | None:
        ...

    def list_user_token_pools(self, *, chain_id: int, user_address: str) -> list[UserTokenPoolAggregate]:
        ...
