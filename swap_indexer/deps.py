from __future__ import annotations

from swap_indexer.application.dto.chain_cycle import POLICY_ADVANCE, POLICY_HOLD, ChainCycleSettings
from swap_indexer.application.use_cases.apply_volume import ApplyVolumeUseCase
from swap_indexer.application.use_cases.discover_pools import DiscoverPoolsUseCase
from swap_indexer.application.use_cases.harvest_swaps import HarvestSwapsUseCase
from swap_indexer.application.use_cases.rebuild_aggregates import RebuildAggregatesUseCase
from swap_indexer.application.use_cases.resolve_user import ResolveUserUseCase
from swap_indexer.application.use_cases.run_chain_cycle import RunChainCycleUseCase
from swap_indexer.application.use_cases.run_indexer import IndexerOrchestrator
from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.infrastructure.chain.token_list_loader import JsonTokenListLoader
from swap_indexer.infrastructure.checkpoints.json_checkpoint_store import JsonCheckpointStore
from swap_indexer.infrastructure.clients.evm_rpc_client import EvmRpcClientFactory, EvmRpcClientSettings
from swap_indexer.infrastructure.clients.router_call_decoder import UniversalRouterCallDecoder
from swap_indexer.infrastructure.db.engine import get_engine
from swap_indexer.infrastructure.db.repositories.indexing_gap_repository import SqlIndexingGapRepository
from swap_indexer.infrastructure.db.repositories.pool_repository import SqlPoolRepository
from swap_indexer.infrastructure.db.repositories.swap_ledger_repository import SqlSwapLedgerRepository
from swap_indexer.infrastructure.db.repositories.volume_aggregate_repository import SqlVolumeAggregateRepository
from swap_indexer.infrastructure.observers.logging_observer import LoggingIndexerObserver
from swap_indexer.shared.config import Settings


def get_db_engine(settings: Settings):
    if not settings.postgres_dsn:
        raise RuntimeError("POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


def build_rpc_client_factory(settings: Settings) -> EvmRpcClientFactory:
    return EvmRpcClientFactory(
        EvmRpcClientSettings(
            timeout_seconds=settings.rpc_timeout_seconds,
            max_retries=settings.rpc_max_retries,
            retry_base_delay_seconds=settings.rpc_retry_base_delay_seconds,
            trace_max_retries=settings.rpc_trace_max_retries,
            min_interval_ms=settings.rpc_min_interval_ms,
        )
    )


def build_chain_cycle_settings(settings: Settings) -> ChainCycleSettings:
    policy = settings.harvest_failure_policy
    if policy not in (POLICY_ADVANCE, POLICY_HOLD):
        raise ValueError(f"HARVEST_FAILURE_POLICY must be '{POLICY_ADVANCE}' or '{POLICY_HOLD}', got {policy!r}.")
    if settings.block_batch_size < 1:
        raise ValueError("BLOCK_BATCH_SIZE must be >= 1.")
    return ChainCycleSettings(
        block_batch_size=settings.block_batch_size,
        catchup_threshold_blocks=settings.catchup_threshold_blocks,
        catchup_lag_blocks=settings.catchup_lag_blocks,
        fee_tiers=settings.fee_tiers,
        harvest_failure_policy=policy,
        record_indexing_gaps=settings.record_indexing_gaps,
    )


def build_apply_volume(engine) -> ApplyVolumeUseCase:
    return ApplyVolumeUseCase(volume_aggregate_port=SqlVolumeAggregateRepository(engine))


def build_orchestrator(
    settings: Settings,
    chains: dict[str, ChainConfig],
    *,
    engine=None,
) -> IndexerOrchestrator:
    engine = engine if engine is not None else get_db_engine(settings)
    observer = LoggingIndexerObserver()
    swap_ledger = SqlSwapLedgerRepository(engine)
    checkpoint_store = JsonCheckpointStore(settings.checkpoint_dir)

    harvest_swaps = HarvestSwapsUseCase(
        swap_ledger_port=swap_ledger,
        resolve_user=ResolveUserUseCase(router_call_decoder=UniversalRouterCallDecoder()),
        apply_volume=build_apply_volume(engine),
        observer=observer,
    )
    discover_pools = DiscoverPoolsUseCase(
        pool_port=SqlPoolRepository(engine),
        swap_ledger_port=swap_ledger,
        observer=observer,
    )
    run_chain_cycle = RunChainCycleUseCase(
        settings=build_chain_cycle_settings(settings),
        chain_rpc_factory=build_rpc_client_factory(settings),
        checkpoint_port=checkpoint_store,
        token_list_port=JsonTokenListLoader(),
        indexing_gap_port=SqlIndexingGapRepository(engine),
        discover_pools=discover_pools,
        harvest_swaps=harvest_swaps,
        observer=observer,
    )
    return IndexerOrchestrator(
        chains=chains,
        checkpoint_port=checkpoint_store,
        run_chain_cycle=run_chain_cycle,
        chain_delay_seconds=settings.chain_delay_seconds,
    )


def build_rebuild_aggregates(settings: Settings, *, engine=None) -> RebuildAggregatesUseCase:
    engine = engine if engine is not None else get_db_engine(settings)
    return RebuildAggregatesUseCase(
        swap_ledger_port=SqlSwapLedgerRepository(engine),
        volume_aggregate_port=SqlVolumeAggregateRepository(engine),
        apply_volume=build_apply_volume(engine),
    )
