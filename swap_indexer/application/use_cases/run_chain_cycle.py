from __future__ import annotations

import logging

from swap_indexer.application.dto.chain_cycle import (
    CYCLE_DEFERRED,
    CYCLE_IDLE,
    CYCLE_INDEXED,
    POLICY_HOLD,
    ChainCycleSettings,
    RunChainCycleInput,
    RunChainCycleOutput,
)
from swap_indexer.application.dto.discover_pools import DiscoverPoolsInput
from swap_indexer.application.dto.harvest_swaps import HarvestSwapsInput
from swap_indexer.application.ports.chain_rpc_port import ChainRpcFactoryPort, ChainRpcPort
from swap_indexer.application.ports.checkpoint_port import CheckpointPort
from swap_indexer.application.ports.indexer_observer_port import IndexerObserverPort
from swap_indexer.application.ports.indexing_gap_port import IndexingGapPort
from swap_indexer.application.ports.token_list_port import TokenListPort
from swap_indexer.application.use_cases.discover_pools import DiscoverPoolsUseCase
from swap_indexer.application.use_cases.harvest_swaps import HarvestSwapsUseCase
from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.entities.checkpoint import Checkpoint, IndexingGap
from swap_indexer.domain.exceptions import ChainConnectionError
from swap_indexer.domain.services.block_window import plan_block_window


logger = logging.getLogger(__name__)

GAP_REASON_CATCHUP = "catchup"
GAP_REASON_HARVEST_FAILED = "harvest_failed"


class RunChainCycleUseCase:
    """One pass of a chain: connect, plan the block window, discover, harvest, advance."""

    def __init__(
        self,
        *,
        settings: ChainCycleSettings,
        chain_rpc_factory: ChainRpcFactoryPort,
        checkpoint_port: CheckpointPort,
        token_list_port: TokenListPort,
        indexing_gap_port: IndexingGapPort,
        discover_pools: DiscoverPoolsUseCase,
        harvest_swaps: HarvestSwapsUseCase,
        observer: IndexerObserverPort,
    ):
        self._settings = settings
        self._chain_rpc_factory = chain_rpc_factory
        self._checkpoint_port = checkpoint_port
        self._token_list_port = token_list_port
        self._indexing_gap_port = indexing_gap_port
        self._discover_pools = discover_pools
        self._harvest_swaps = harvest_swaps
        self._observer = observer

    def execute(self, command: RunChainCycleInput) -> RunChainCycleOutput:
        chain = command.chain

        try:
            chain_rpc = self._connect(chain)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "run_chain_cycle: provider_init_failed chain=%s chain_id=%s error=%s",
                chain.key,
                chain.chain_id,
                exc,
            )
            return RunChainCycleOutput(chain_key=chain.key, status=CYCLE_DEFERRED, error=str(exc))

        universe = self._token_list_port.load(chain)
        checkpoint = self._checkpoint_port.read(chain.key)

        try:
            head = chain_rpc.get_block_number()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "run_chain_cycle: get_block_number_failed chain=%s chain_id=%s error=%s",
                chain.key,
                chain.chain_id,
                exc,
            )
            return RunChainCycleOutput(
                chain_key=chain.key,
                status=CYCLE_DEFERRED,
                from_block=checkpoint.from_block,
                error=str(exc),
            )

        plan = plan_block_window(
            from_block=checkpoint.from_block,
            head=head,
            batch_size=self._settings.block_batch_size,
            catchup_threshold=self._settings.catchup_threshold_blocks,
            catchup_lag=self._settings.catchup_lag_blocks,
        )
        if plan.fast_forwarded_from is not None:
            logger.warning(
                "run_chain_cycle: catchup_fast_forward chain=%s chain_id=%s from_block=%s new_from_block=%s head=%s",
                chain.key,
                chain.chain_id,
                plan.fast_forwarded_from,
                plan.from_block,
                head,
            )
            self._checkpoint_port.write(chain.key, Checkpoint(from_block=plan.from_block))
            self._record_gap(
                IndexingGap(
                    chain_id=chain.chain_id,
                    from_block=plan.fast_forwarded_from,
                    to_block=plan.from_block - 1,
                    reason=GAP_REASON_CATCHUP,
                )
            )

        if plan.to_block is None:
            logger.debug(
                "run_chain_cycle: block_ahead chain_id=%s from_block=%s head=%s",
                chain.chain_id,
                plan.from_block,
                head,
            )
            return RunChainCycleOutput(
                chain_key=chain.key,
                status=CYCLE_IDLE,
                from_block=plan.from_block,
                head=head,
                next_from_block=plan.from_block,
                fast_forwarded_from=plan.fast_forwarded_from,
            )

        from_block = plan.from_block
        to_block = plan.to_block

        pools = self._discover_pools.execute(
            DiscoverPoolsInput(
                chain=chain,
                candidate_tokens=universe.entries,
                token_universe=universe,
                fee_tiers=self._settings.fee_tiers,
            ),
            chain_rpc=chain_rpc,
        )

        failed_pools: list[str] = []
        for pool in pools:
            try:
                self._harvest_swaps.execute(
                    HarvestSwapsInput(
                        chain_id=chain.chain_id,
                        pool=pool,
                        token_universe=universe,
                        known_routers=chain.known_routers,
                        from_block=from_block,
                        to_block=to_block,
                    ),
                    chain_rpc=chain_rpc,
                )
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "run_chain_cycle: swap_indexing_error chain_id=%s pool=%s from_block=%s to_block=%s error=%s",
                    chain.chain_id,
                    pool.pool_address,
                    from_block,
                    to_block,
                    exc,
                )
                self._observer.on_failed_process_swap(
                    chain_id=chain.chain_id,
                    pool_address=pool.pool_address,
                    error=f"Swap indexing failed: {exc}",
                )
                failed_pools.append(pool.pool_address)

        next_from_block = to_block + 1
        if failed_pools and self._settings.harvest_failure_policy == POLICY_HOLD:
            next_from_block = from_block
            logger.warning(
                "run_chain_cycle: checkpoint_held chain_id=%s from_block=%s failed_pools=%s",
                chain.chain_id,
                from_block,
                len(failed_pools),
            )
        else:
            for pool_address in failed_pools:
                self._record_gap(
                    IndexingGap(
                        chain_id=chain.chain_id,
                        from_block=from_block,
                        to_block=to_block,
                        reason=GAP_REASON_HARVEST_FAILED,
                        pool_address=pool_address,
                    )
                )
            self._checkpoint_port.write(chain.key, Checkpoint(from_block=next_from_block))

        logger.info(
            "run_chain_cycle: blocks_processed chain_id=%s from_block=%s to_block=%s next_from_block=%s pools=%s failed_pools=%s",
            chain.chain_id,
            from_block,
            to_block,
            next_from_block,
            len(pools),
            len(failed_pools),
        )
        return RunChainCycleOutput(
            chain_key=chain.key,
            status=CYCLE_INDEXED,
            from_block=from_block,
            to_block=to_block,
            head=head,
            next_from_block=next_from_block,
            fast_forwarded_from=plan.fast_forwarded_from,
            pools=len(pools),
            failed_pools=tuple(failed_pools),
        )

    def _connect(self, chain: ChainConfig) -> ChainRpcPort:
        chain_rpc = self._chain_rpc_factory(chain.rpc_url)
        served_chain_id = chain_rpc.ping()
        if served_chain_id != chain.chain_id:
            raise ChainConnectionError(
                f"RPC for {chain.key} serves chain_id={served_chain_id}, expected {chain.chain_id}"
            )
        return chain_rpc

    def _record_gap(self, gap: IndexingGap) -> None:
        if not self._settings.record_indexing_gaps:
            return
        try:
            self._indexing_gap_port.record_gap(gap)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "run_chain_cycle: gap_record_failed chain_id=%s from_block=%s to_block=%s reason=%s error=%s",
                gap.chain_id,
                gap.from_block,
                gap.to_block,
                gap.reason,
                exc,
            )
            return
        self._observer.on_gap_recorded(gap)
