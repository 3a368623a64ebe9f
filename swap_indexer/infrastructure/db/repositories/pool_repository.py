from __future__ import annotations

from decimal import Decimal
import logging

from sqlalchemy import text

from swap_indexer.application.ports.pool_port import PoolPort
from swap_indexer.domain.entities.pool import PoolRecord


logger = logging.getLogger(__name__)


class SqlPoolRepository(PoolPort):
    def __init__(self, engine):
        self._engine = engine

    def upsert_pool(self, pool: PoolRecord) -> None:
        sql = text(
            """
            INSERT INTO public.pools (
                pool_address,
                chain_id,
                token0,
                token1,
                fee,
                volume,
                updated_at
            )
            VALUES (
                :pool_address,
                :chain_id,
                :token0,
                :token1,
                :fee,
                :volume,
                now()
            )
            ON CONFLICT (pool_address, chain_id)
            DO UPDATE SET
                token0 = EXCLUDED.token0,
                token1 = EXCLUDED.token1,
                fee = EXCLUDED.fee,
                volume = COALESCE(EXCLUDED.volume, public.pools.volume),
                updated_at = now()
            """
        )
        params = {
            "pool_address": pool.pool_address.lower(),
            "chain_id": pool.chain_id,
            "token0": pool.token0.lower(),
            "token1": pool.token1.lower(),
            "fee": pool.fee,
            "volume": Decimal(pool.volume) if pool.volume is not None else None,
        }
        with self._engine.begin() as conn:
            conn.execute(sql, params)
        logger.debug(
            "pool_repo: upsert_pool pool=%s chain_id=%s fee=%s volume=%s",
            params["pool_address"],
            pool.chain_id,
            pool.fee,
            pool.volume,
        )
