from __future__ import annotations

import logging

from swap_indexer.application.dto.apply_volume import (
    ApplyVolumeInput,
    RebuildAggregatesInput,
    RebuildAggregatesOutput,
)
from swap_indexer.application.ports.swap_ledger_port import SwapLedgerPort
from swap_indexer.application.ports.volume_aggregate_port import VolumeAggregatePort
from swap_indexer.application.use_cases.apply_volume import ApplyVolumeUseCase
from swap_indexer.domain.exceptions import VolumeInputError


logger = logging.getLogger(__name__)


class RebuildAggregatesUseCase:
    """Drop a chain's derived aggregates and replay them from the swap ledger."""

    def __init__(
        self,
        *,
        swap_ledger_port: SwapLedgerPort,
        volume_aggregate_port: VolumeAggregatePort,
        apply_volume: ApplyVolumeUseCase,
    ):
        self._swap_ledger_port = swap_ledger_port
        self._volume_aggregate_port = volume_aggregate_port
        self._apply_volume = apply_volume

    def execute(self, command: RebuildAggregatesInput) -> RebuildAggregatesOutput:
        if command.page_size < 1:
            raise ValueError("page_size must be >= 1.")

        self._volume_aggregate_port.reset_chain(chain_id=command.chain_id)
        replayed = 0
        rejected = 0
        offset = 0
        while True:
            page = self._swap_ledger_port.list_swaps(
                chain_id=command.chain_id,
                offset=offset,
                limit=command.page_size,
            )
            if not page:
                break
            for swap in page:
                try:
                    self._apply_volume.execute(
                        ApplyVolumeInput(
                            user_address=swap.user_address,
                            token0=swap.token0,
                            token1=swap.token1,
                            amount0=swap.amount0,
                            amount1=swap.amount1,
                            pool_address=swap.pool_address,
                            chain_id=swap.chain_id,
                            token_universe=command.token_universe,
                        )
                    )
                except VolumeInputError as exc:
                    rejected += 1
                    logger.warning(
                        "rebuild_aggregates: rejected_swap chain_id=%s tx=%s error=%s",
                        command.chain_id,
                        swap.transaction_hash,
                        exc,
                    )
                    continue
                replayed += 1
            offset += len(page)
            logger.info(
                "rebuild_aggregates: page_done chain_id=%s offset=%s replayed=%s rejected=%s",
                command.chain_id,
                offset,
                replayed,
                rejected,
            )
            if len(page) < command.page_size:
                break

        return RebuildAggregatesOutput(chain_id=command.chain_id, replayed=replayed, rejected=rejected)
