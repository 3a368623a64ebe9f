from __future__ import annotations

import logging

from sqlalchemy import text

from swap_indexer.application.ports.volume_aggregate_port import VolumeAggregatePort
from swap_indexer.domain.entities.volume import (
    TokenAggregate,
    UserAggregate,
    UserTokenPoolAggregate,
    VolumeDeltas,
)
from swap_indexer.infrastructure.db.mappers.volume_mapper import (
    map_row_to_token_aggregate,
    map_row_to_user_aggregate,
    map_row_to_user_token_pool_aggregate,
    map_token_delta_to_params,
    map_user_delta_to_params,
    map_user_token_pool_delta_to_params,
)


logger = logging.getLogger(__name__)


_UPSERT_USER_SQL = text(
    """
    INSERT INTO public.users (address, chain_id, total_volume, total_swaps)
    VALUES (:address, :chain_id, :volume, 1)
    ON CONFLICT (address, chain_id)
    DO UPDATE SET
        total_volume = public.users.total_volume + EXCLUDED.total_volume,
        total_swaps = public.users.total_swaps + 1
    """
)

_UPSERT_TOKEN_SQL = text(
    """
    INSERT INTO public.tokens (address, chain_id, symbol, total_volume, total_swaps)
    VALUES (:address, :chain_id, :symbol, :volume, 1)
    ON CONFLICT (address, chain_id)
    DO UPDATE SET
        symbol = EXCLUDED.symbol,
        total_volume = public.tokens.total_volume + EXCLUDED.total_volume,
        total_swaps = public.tokens.total_swaps + 1
    """
)

_UPSERT_USER_TOKEN_POOL_SQL = text(
    """
    INSERT INTO public.token_volumes (user_address, token_address, pool_address, chain_id, volume, swaps)
    VALUES (:user_address, :token_address, :pool_address, :chain_id, :volume, 1)
    ON CONFLICT (user_address, token_address, pool_address, chain_id)
    DO UPDATE SET
        volume = public.token_volumes.volume + EXCLUDED.volume,
        swaps = public.token_volumes.swaps + 1
    """
)


class SqlVolumeAggregateRepository(VolumeAggregatePort):
    """Applies one swap's volume deltas as atomic increments in a single transaction."""

    def __init__(self, engine):
        self._engine = engine

    def apply(self, deltas: VolumeDeltas) -> None:
        with self._engine.begin() as conn:
            conn.execute(_UPSERT_USER_SQL, map_user_delta_to_params(deltas))
            for token in deltas.token_deltas:
                conn.execute(_UPSERT_TOKEN_SQL, map_token_delta_to_params(deltas, token))
                conn.execute(_UPSERT_USER_TOKEN_POOL_SQL, map_user_token_pool_delta_to_params(deltas, token))
        logger.debug(
            "volume_aggregate_repo: applied chain_id=%s user=%s pool=%s user_volume=%s tokens=%s",
            deltas.chain_id,
            deltas.user_address,
            deltas.pool_address,
            deltas.user_volume,
            len(deltas.token_deltas),
        )

    def reset_chain(self, *, chain_id: int) -> None:
        with self._engine.begin() as conn:
            for table in ("token_volumes", "tokens", "users"):
                conn.execute(
                    text(f"DELETE FROM public.{table} WHERE chain_id = :chain_id"),
                    {"chain_id": chain_id},
                )
        logger.info("volume_aggregate_repo: reset_chain chain_id=%s", chain_id)

    def get_user_aggregate(self, *, chain_id: int, address: str) -> UserAggregate | None:
        sql = text(
            """
            SELECT address, chain_id, total_volume, total_swaps
            FROM public.users
            WHERE chain_id = :chain_id
              AND address = :address
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(sql, {"chain_id": chain_id, "address": address.lower()}).mappings().first()
        return map_row_to_user_aggregate(row) if row else None

    def get_token_aggregate(self, *, chain_id: int, address: str) -> TokenAggregate | None:
        sql = text(
            """
            SELECT address, chain_id, symbol, total_volume, total_swaps
            FROM public.tokens
            WHERE chain_id = :chain_id
              AND address = :address
            """
        )
        with self._engine.connect() as conn:
            row = conn.execute(sql, {"chain_id": chain_id, "address": address.lower()}).mappings().first()
        return map_row_to_token_aggregate(row) if row else None

    def list_user_token_pools(self, *, chain_id: int, user_address: str) -> list[UserTokenPoolAggregate]:
        sql = text(
            """
            SELECT user_address, token_address, pool_address, chain_id, volume, swaps
            FROM public.token_volumes
            WHERE chain_id = :chain_id
              AND user_address = :user_address
            ORDER BY volume DESC, token_address, pool_address
            """
        )
        with self._engine.connect() as conn:
            rows = conn.execute(
                sql,
                {"chain_id": chain_id, "user_address": user_address.lower()},
            ).mappings().all()
        return [map_row_to_user_token_pool_aggregate(row) for row in rows]
