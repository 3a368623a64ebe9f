from __future__ import annotations

import logging

from swap_indexer.application.ports.indexer_observer_port import IndexerObserverPort
from swap_indexer.domain.entities.checkpoint import IndexingGap
from swap_indexer.domain.entities.pool import PoolRecord


logger = logging.getLogger(__name__)


class LoggingIndexerObserver(IndexerObserverPort):
    def on_pool_found(self, pool: PoolRecord) -> None:
        logger.info(
            "indexer_observer: pool_found chain_id=%s pool=%s token0=%s token1=%s fee=%s",
            pool.chain_id,
            pool.pool_address,
            pool.token0,
            pool.token1,
            pool.fee,
        )

    def on_indexing_swaps(self, *, chain_id: int, pool_address: str, from_block: int, to_block: int) -> None:
        logger.info(
            "indexer_observer: indexing_swaps chain_id=%s pool=%s from_block=%s to_block=%s",
            chain_id,
            pool_address,
            from_block,
            to_block,
        )

    def on_failed_update_volumes(self, *, chain_id: int, subject: str, error: str) -> None:
        logger.error(
            "indexer_observer: failed_update_volumes chain_id=%s subject=%s error=%s",
            chain_id,
            subject,
            error,
        )

    def on_failed_process_swap(self, *, chain_id: int, pool_address: str, error: str) -> None:
        logger.error(
            "indexer_observer: failed_process_swap chain_id=%s pool=%s error=%s",
            chain_id,
            pool_address,
            error,
        )

    def on_gap_recorded(self, gap: IndexingGap) -> None:
        logger.warning(
            "indexer_observer: gap_recorded chain_id=%s pool=%s from_block=%s to_block=%s reason=%s",
            gap.chain_id,
            gap.pool_address,
            gap.from_block,
            gap.to_block,
            gap.reason,
        )
