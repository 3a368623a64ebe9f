from __future__ import annotations

import logging

from sqlalchemy import text

from swap_indexer.application.ports.indexing_gap_port import IndexingGapPort
from swap_indexer.domain.entities.checkpoint import IndexingGap


logger = logging.getLogger(__name__)


class SqlIndexingGapRepository(IndexingGapPort):
    def __init__(self, engine):
        self._engine = engine

    def record_gap(self, gap: IndexingGap) -> None:
        sql = text(
            """
            INSERT INTO public.indexing_gaps (
                chain_id,
                pool_address,
                from_block,
                to_block,
                reason,
                created_at
            )
            VALUES (
                :chain_id,
                :pool_address,
                :from_block,
                :to_block,
                :reason,
                now()
            )
            """
        )
        with self._engine.begin() as conn:
            conn.execute(
                sql,
                {
                    "chain_id": gap.chain_id,
                    "pool_address": gap.pool_address.lower() if gap.pool_address else None,
                    "from_block": gap.from_block,
                    "to_block": gap.to_block,
                    "reason": gap.reason,
                },
            )
        logger.debug(
            "indexing_gap_repo: record_gap chain_id=%s pool=%s from_block=%s to_block=%s reason=%s",
            gap.chain_id,
            gap.pool_address,
            gap.from_block,
            gap.to_block,
            gap.reason,
        )
