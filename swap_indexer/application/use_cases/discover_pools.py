from __future__ import annotations

from dataclasses import replace
import logging

from swap_indexer.application.dto.discover_pools import DiscoverPoolsInput
from swap_indexer.application.ports.chain_rpc_port import ChainRpcPort
from swap_indexer.application.ports.indexer_observer_port import IndexerObserverPort
from swap_indexer.application.ports.pool_port import PoolPort
from swap_indexer.application.ports.swap_ledger_port import SwapLedgerPort
from swap_indexer.domain.entities.pool import PoolCandidate, PoolRecord
from swap_indexer.domain.exceptions import InvalidFactoryAddressError
from swap_indexer.domain.services.addresses import canonical_pair, is_address, is_zero_address
from swap_indexer.domain.services.pair_candidates import build_pair_candidates


logger = logging.getLogger(__name__)


class DiscoverPoolsUseCase:
    def __init__(
        self,
        *,
        pool_port: PoolPort,
        swap_ledger_port: SwapLedgerPort,
        observer: IndexerObserverPort,
    ):
        self._pool_port = pool_port
        self._swap_ledger_port = swap_ledger_port
        self._observer = observer

    def execute(self, command: DiscoverPoolsInput, *, chain_rpc: ChainRpcPort) -> list[PoolRecord]:
        chain = command.chain
        factory = chain.factory_address
        if is_zero_address(factory) or not is_address(factory):
            logger.error(
                "discover_pools: invalid_factory chain_id=%s factory=%s",
                chain.chain_id,
                factory,
            )
            raise InvalidFactoryAddressError(f"Invalid factory address for chain {chain.key}: {factory!r}")

        candidates = build_pair_candidates(command.candidate_tokens, command.fee_tiers)
        logger.debug(
            "discover_pools: start chain_id=%s factory=%s candidates=%s",
            chain.chain_id,
            factory,
            len(candidates),
        )

        pools: list[PoolRecord] = []
        for candidate in candidates:
            if not is_address(candidate.token_a) or not is_address(candidate.token_b):
                logger.warning(
                    "discover_pools: invalid_token_addresses chain_id=%s token_a=%s token_b=%s fee=%s",
                    chain.chain_id,
                    candidate.token_a,
                    candidate.token_b,
                    candidate.fee,
                )
                continue
            if not command.token_universe.contains(candidate.token_a) and not command.token_universe.contains(
                candidate.token_b
            ):
                continue

            try:
                pool = self._resolve_candidate(command, candidate, chain_rpc=chain_rpc)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "discover_pools: process_pool_error chain_id=%s token_a=%s token_b=%s fee=%s error=%s",
                    chain.chain_id,
                    candidate.token_a,
                    candidate.token_b,
                    candidate.fee,
                    exc,
                )
                self._observer.on_failed_update_volumes(
                    chain_id=chain.chain_id,
                    subject=f"{candidate.token_a}-{candidate.token_b}-{candidate.fee}",
                    error=str(exc),
                )
                continue
            if pool is not None:
                pools.append(pool)

        logger.info("discover_pools: done chain_id=%s pools=%s", chain.chain_id, len(pools))
        return pools

    def _resolve_candidate(
        self,
        command: DiscoverPoolsInput,
        candidate: PoolCandidate,
        *,
        chain_rpc: ChainRpcPort,
    ) -> PoolRecord | None:
        chain = command.chain
        token0, token1 = canonical_pair(candidate.token_a, candidate.token_b)
        pool_address = chain_rpc.get_pool(
            factory_address=chain.factory_address,
            token0=token0,
            token1=token1,
            fee=candidate.fee,
        )
        if is_zero_address(pool_address):
            return None
        if not is_address(pool_address):
            logger.warning(
                "discover_pools: invalid_pool_address chain_id=%s pool=%s token0=%s token1=%s fee=%s",
                chain.chain_id,
                pool_address,
                token0,
                token1,
                candidate.fee,
            )
            return None

        pool = PoolRecord(
            chain_id=chain.chain_id,
            pool_address=pool_address.lower(),
            token0=token0,
            token1=token1,
            fee=candidate.fee,
        )
        self._observer.on_pool_found(pool)

        volume: int | None
        try:
            volume = self._swap_ledger_port.sum_pool_volume(
                chain_id=chain.chain_id,
                pool_address=pool.pool_address,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "discover_pools: swap_volume_calculation_failed chain_id=%s pool=%s error=%s",
                chain.chain_id,
                pool.pool_address,
                exc,
            )
            volume = None

        pool = replace(pool, volume=volume)
        self._pool_port.upsert_pool(pool)
        return pool
