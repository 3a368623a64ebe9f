from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class UserAggregate:
    address: str
    chain_id: int
    total_volume: int
    total_swaps: int


@dataclass(frozen=True)
class TokenAggregate:
    address: str
    chain_id: int
    symbol: str
    total_volume: int
    total_swaps: int


@dataclass(frozen=True)
class UserTokenPoolAggregate:
    user_address: str
    token_address: str
    pool_address: str
    chain_id: int
    volume: int
    swaps: int


@dataclass(frozen=True)
class TokenVolumeDelta:
    token_address: str
    symbol: str
    volume: int


@dataclass(frozen=True)
class VolumeDeltas:
    chain_id: int
    user_address: str
    pool_address: str
    user_volume: int
    token_deltas: tuple[TokenVolumeDelta, ...] = ()
