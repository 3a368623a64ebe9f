from __future__ import annotations

import logging

from sqlalchemy import text

from swap_indexer.application.ports.swap_ledger_port import SwapLedgerPort
from swap_indexer.domain.entities.swap import SwapRecord
from swap_indexer.infrastructure.db.mappers.swap_mapper import (
    map_row_to_swap_record,
    map_swap_record_to_params,
)


logger = logging.getLogger(__name__)


class SqlSwapLedgerRepository(SwapLedgerPort):
    def __init__(self, engine):
        self._engine = engine

    def insert_swap(self, swap: SwapRecord) -> bool:
        sql = text(
            """
            INSERT INTO public.swaps (
                transaction_hash,
                chain_id,
                pool_address,
                user_address,
                token0,
                token1,
                amount0,
                amount1,
                block_number,
                timestamp
            )
            VALUES (
                :transaction_hash,
                :chain_id,
                :pool_address,
                :user_address,
                :token0,
                :token1,
                :amount0,
                :amount1,
                :block_number,
                :timestamp
            )
            ON CONFLICT (transaction_hash, chain_id) DO NOTHING
            RETURNING transaction_hash
            """
        )
        with self._engine.begin() as conn:
            inserted = conn.execute(sql, map_swap_record_to_params(swap)).first() is not None
        if not inserted:
            logger.debug(
                "swap_ledger_repo: duplicate_swap tx=%s chain_id=%s",
                swap.transaction_hash,
                swap.chain_id,
            )
        return inserted

    def sum_pool_volume(self, *, chain_id: int, pool_address: str) -> int:
        sql = text(
            """
            SELECT COALESCE(SUM(ABS(amount0) + ABS(amount1)), 0) AS volume
            FROM public.swaps
            WHERE chain_id = :chain_id
              AND pool_address = :pool_address
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(
                sql,
                {"chain_id": chain_id, "pool_address": pool_address.lower()},
            ).mappings().first()
        if not row or row["volume"] is None:
            return 0
        return int(row["volume"])

    def list_swaps(self, *, chain_id: int, offset: int, limit: int) -> list[SwapRecord]:
        sql = text(
            """
            SELECT
                transaction_hash,
                chain_id,
                pool_address,
                user_address,
                token0,
                token1,
                amount0,
                amount1,
                block_number,
                timestamp
            FROM public.swaps
            WHERE chain_id = :chain_id
            ORDER BY block_number, transaction_hash
            LIMIT :limit
            OFFSET :offset
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(
                sql,
                {"chain_id": chain_id, "offset": offset, "limit": limit},
            ).mappings().all()
        return [map_row_to_swap_record(row) for row in rows]
