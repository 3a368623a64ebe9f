from __future__ import annotations

import logging

from swap_indexer.application.dto.apply_volume import ApplyVolumeInput
from swap_indexer.application.ports.volume_aggregate_port import VolumeAggregatePort
from swap_indexer.domain.entities.volume import VolumeDeltas
from swap_indexer.domain.exceptions import VolumeInputError
from swap_indexer.domain.services.addresses import is_address
from swap_indexer.domain.services.volume import build_volume_deltas


logger = logging.getLogger(__name__)


def _to_int_amount(value: int | str, *, field_name: str) -> int:
    if isinstance(value, bool):
        raise VolumeInputError(f"{field_name} must be an integer amount.")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise VolumeInputError(f"{field_name} must be an integer amount.") from exc


class ApplyVolumeUseCase:
    def __init__(self, *, volume_aggregate_port: VolumeAggregatePort):
        self._volume_aggregate_port = volume_aggregate_port

    def execute(self, command: ApplyVolumeInput) -> VolumeDeltas:
        if not is_address(command.user_address):
            raise VolumeInputError(f"Invalid user_address: {command.user_address!r}")
        if not is_address(command.token0) or not is_address(command.token1):
            raise VolumeInputError("Invalid token addresses.")
        if not is_address(command.pool_address):
            raise VolumeInputError(f"Invalid pool_address: {command.pool_address!r}")
        if (
            command.chain_id is None
            or isinstance(command.chain_id, bool)
            or not isinstance(command.chain_id, int)
            or command.chain_id <= 0
        ):
            raise VolumeInputError(f"Invalid chain_id: {command.chain_id!r}")

        amount0 = _to_int_amount(command.amount0, field_name="amount0")
        amount1 = _to_int_amount(command.amount1, field_name="amount1")

        deltas = build_volume_deltas(
            chain_id=command.chain_id,
            user_address=command.user_address,
            pool_address=command.pool_address,
            token0=command.token0,
            token1=command.token1,
            amount0=amount0,
            amount1=amount1,
            token_universe=command.token_universe,
        )
        self._volume_aggregate_port.apply(deltas)
        logger.debug(
            "apply_volume: applied chain_id=%s user=%s pool=%s user_volume=%s token_legs=%s",
            deltas.chain_id,
            deltas.user_address,
            deltas.pool_address,
            deltas.user_volume,
            len(deltas.token_deltas),
        )
        return deltas
