from __future__ import annotations

from dataclasses import dataclass, field

from swap_indexer.domain.entities.chain import ChainConfig

CYCLE_DEFERRED = "deferred"
CYCLE_IDLE = "idle"
CYCLE_INDEXED = "indexed"

POLICY_ADVANCE = "advance"
POLICY_HOLD = "hold"


@dataclass(frozen=True)
class ChainCycleSettings:
    block_batch_size: int
    catchup_threshold_blocks: int
    catchup_lag_blocks: int
    fee_tiers: tuple[int, ...]
    harvest_failure_policy: str = POLICY_ADVANCE
    record_indexing_gaps: bool = True


@dataclass(frozen=True)
class RunChainCycleInput:
    chain: ChainConfig


@dataclass(frozen=True)
class RunChainCycleOutput:
    chain_key: str
    status: str
    from_block: int | None = None
    to_block: int | None = None
    head: int | None = None
    next_from_block: int | None = None
    fast_forwarded_from: int | None = None
    pools: int = 0
    failed_pools: tuple[str, ...] = field(default_factory=tuple)
    error: str | None = None
