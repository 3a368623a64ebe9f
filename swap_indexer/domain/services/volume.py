from __future__ import annotations

from swap_indexer.domain.entities.token import TokenUniverse
from swap_indexer.domain.entities.volume import TokenVolumeDelta, VolumeDeltas


def swap_leg_volume(amount0: int, amount1: int) -> int:
    return abs(amount0) + abs(amount1)


def build_volume_deltas(
    *,
    chain_id: int,
    user_address: str,
    pool_address: str,
    token0: str,
    token1: str,
    amount0: int,
    amount1: int,
    token_universe: TokenUniverse,
) -> VolumeDeltas:
    token_deltas: list[TokenVolumeDelta] = []
    for token, amount in ((token0, amount0), (token1, amount1)):
        if amount == 0 or not token_universe.contains(token):
            continue
        token_deltas.append(
            TokenVolumeDelta(
                token_address=token.lower(),
                symbol=token_universe.symbol_for(token),
                volume=abs(amount),
            )
        )

    return VolumeDeltas(
        chain_id=chain_id,
        user_address=user_address.lower(),
        pool_address=pool_address.lower(),
        user_volume=swap_leg_volume(amount0, amount1),
        token_deltas=tuple(token_deltas),
    )
