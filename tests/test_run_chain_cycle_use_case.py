from __future__ import annotations

import unittest

from swap_indexer.application.dto.chain_cycle import (
    CYCLE_DEFERRED,
    CYCLE_IDLE,
    CYCLE_INDEXED,
    POLICY_ADVANCE,
    POLICY_HOLD,
    ChainCycleSettings,
    RunChainCycleInput,
    RunChainCycleOutput,
)
from swap_indexer.application.dto.discover_pools import DiscoverPoolsInput
from swap_indexer.application.dto.harvest_swaps import HarvestSwapsInput, HarvestSwapsOutput
from swap_indexer.application.use_cases.run_chain_cycle import RunChainCycleUseCase
from swap_indexer.application.use_cases.run_indexer import IndexerOrchestrator
from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.entities.checkpoint import Checkpoint, IndexingGap
from swap_indexer.domain.entities.pool import PoolRecord
from swap_indexer.domain.entities.token import TokenListEntry, TokenUniverse
from swap_indexer.domain.exceptions import (
    CheckpointRegressionError,
    InvalidFactoryAddressError,
    SwapHarvestError,
)


FACTORY = "0x1f98431c8ad98523631ae4a59f267346ea31f984"
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
POOL_A = "0x3333333333333333333333333333333333333333"
POOL_B = "0x3434343434343434343434343434343434343434"

UNIVERSE = TokenUniverse(
    entries=(
        TokenListEntry(address=WETH, symbol="WETH", decimals=18),
        TokenListEntry(address=USDC, symbol="USDC", decimals=6),
    )
)


def _chain(key: str = "ethereum", chain_id: int = 1, rpc_url: str = "http://node") -> ChainConfig:
    return ChainConfig(
        key=key,
        chain_id=chain_id,
        name=key.title(),
        rpc_url=rpc_url,
        factory_address=FACTORY,
        token_list_path=f"config/tokens/{key}.json",
        from_block=100,
    )


class FakeChainRpc:
    def __init__(self, *, chain_id: int = 1, head: int = 200, head_error: Exception | None = None):
        self._chain_id = chain_id
        self._head = head
        self._head_error = head_error

    def ping(self) -> int:
        return self._chain_id

    def get_block_number(self) -> int:
        if self._head_error is not None:
            raise self._head_error
        return self._head


class FakeRpcFactory:
    def __init__(self, rpc: FakeChainRpc | None = None, error: Exception | None = None):
        self._rpc = rpc or FakeChainRpc()
        self._error = error
        self.urls: list[str] = []

    def __call__(self, rpc_url: str) -> FakeChainRpc:
        self.urls.append(rpc_url)
        if self._error is not None:
            raise self._error
        return self._rpc


class InMemoryCheckpoints:
    def __init__(self, initial: dict[str, int] | None = None):
        self.values = dict(initial or {})
        self.writes: list[tuple[str, int]] = []

    def ensure(self, chain_key: str, from_block: int) -> Checkpoint:
        self.values.setdefault(chain_key, from_block)
        return Checkpoint(from_block=self.values[chain_key])

    def read(self, chain_key: str) -> Checkpoint:
        return Checkpoint(from_block=self.values[chain_key])

    def write(self, chain_key: str, checkpoint: Checkpoint) -> None:
        if checkpoint.from_block < self.values.get(chain_key, 0):
            raise CheckpointRegressionError(chain_key)
        self.values[chain_key] = checkpoint.from_block
        self.writes.append((chain_key, checkpoint.from_block))


class FakeTokenLists:
    def load(self, chain: ChainConfig) -> TokenUniverse:
        return UNIVERSE


class FakeGaps:
    def __init__(self):
        self.gaps: list[IndexingGap] = []

    def record_gap(self, gap: IndexingGap) -> None:
        self.gaps.append(gap)


class FakeDiscoverPools:
    def __init__(self, pools: list[PoolRecord], error: Exception | None = None):
        self._pools = pools
        self._error = error
        self.calls = 0

    def execute(self, command: DiscoverPoolsInput, *, chain_rpc) -> list[PoolRecord]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._pools


class FakeHarvestSwaps:
    def __init__(self, failing_pools: set[str] | None = None):
        self._failing = failing_pools or set()
        self.windows: list[tuple[str, int, int]] = []

    def execute(self, command: HarvestSwapsInput, *, chain_rpc) -> HarvestSwapsOutput:
        self.windows.append((command.pool.pool_address, command.from_block, command.to_block))
        if command.pool.pool_address in self._failing:
            raise SwapHarvestError("logs query failed")
        return HarvestSwapsOutput()


class RecordingObserver:
    def __init__(self):
        self.failed_swaps: list[str] = []
        self.gaps: list[IndexingGap] = []

    def on_pool_found(self, pool: PoolRecord) -> None:
        pass

    def on_indexing_swaps(self, *, chain_id: int, pool_address: str, from_block: int, to_block: int) -> None:
        pass

    def on_failed_update_volumes(self, *, chain_id: int, subject: str, error: str) -> None:
        pass

    def on_failed_process_swap(self, *, chain_id: int, pool_address: str, error: str) -> None:
        self.failed_swaps.append(pool_address)

    def on_gap_recorded(self, gap: IndexingGap) -> None:
        self.gaps.append(gap)


def _pools() -> list[PoolRecord]:
    return [
        PoolRecord(chain_id=1, pool_address=POOL_A, token0=USDC, token1=WETH, fee=500),
        PoolRecord(chain_id=1, pool_address=POOL_B, token0=USDC, token1=WETH, fee=3000),
    ]


class RunChainCycleUseCaseTests(unittest.TestCase):
    def _build(
        self,
        *,
        checkpoint: int = 100,
        rpc_factory: FakeRpcFactory | None = None,
        discover: FakeDiscoverPools | None = None,
        harvest: FakeHarvestSwaps | None = None,
        policy: str = POLICY_ADVANCE,
        record_gaps: bool = True,
    ) -> RunChainCycleUseCase:
        self.checkpoints = InMemoryCheckpoints({"ethereum": checkpoint})
        self.gaps = FakeGaps()
        self.observer = RecordingObserver()
        self.discover = discover or FakeDiscoverPools(_pools())
        self.harvest = harvest or FakeHarvestSwaps()
        return RunChainCycleUseCase(
            settings=ChainCycleSettings(
                block_batch_size=10,
                catchup_threshold_blocks=10_000,
                catchup_lag_blocks=1_000,
                fee_tiers=(500, 3000, 10000),
                harvest_failure_policy=policy,
                record_indexing_gaps=record_gaps,
            ),
            chain_rpc_factory=rpc_factory or FakeRpcFactory(),
            checkpoint_port=self.checkpoints,
            token_list_port=FakeTokenLists(),
            indexing_gap_port=self.gaps,
            discover_pools=self.discover,
            harvest_swaps=self.harvest,
            observer=self.observer,
        )

    def test_indexes_one_batch_and_advances_checkpoint(self):
        use_case = self._build()

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.status, CYCLE_INDEXED)
        self.assertEqual((result.from_block, result.to_block), (100, 109))
        self.assertEqual(result.next_from_block, 110)
        self.assertEqual(self.checkpoints.values["ethereum"], 110)
        self.assertEqual(self.harvest.windows, [(POOL_A, 100, 109), (POOL_B, 100, 109)])
        self.assertEqual(self.gaps.gaps, [])

    def test_checkpoint_ahead_of_head_is_idle(self):
        use_case = self._build(checkpoint=201)

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.status, CYCLE_IDLE)
        self.assertEqual(self.discover.calls, 0)
        self.assertEqual(self.checkpoints.writes, [])

    def test_far_behind_fast_forwards_and_records_gap(self):
        use_case = self._build(rpc_factory=FakeRpcFactory(FakeChainRpc(head=20100)))

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.fast_forwarded_from, 100)
        self.assertEqual(result.from_block, 19100)
        self.assertEqual(self.checkpoints.writes, [("ethereum", 19100), ("ethereum", 19110)])
        self.assertEqual(len(self.gaps.gaps), 1)
        gap = self.gaps.gaps[0]
        self.assertEqual((gap.from_block, gap.to_block, gap.reason), (100, 19099, "catchup"))
        self.assertEqual(self.observer.gaps, [gap])

    def test_gap_recording_can_be_disabled(self):
        use_case = self._build(rpc_factory=FakeRpcFactory(FakeChainRpc(head=20100)), record_gaps=False)

        use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(self.gaps.gaps, [])
        self.assertEqual(self.checkpoints.values["ethereum"], 19110)

    def test_provider_failure_defers_without_touching_checkpoint(self):
        use_case = self._build(rpc_factory=FakeRpcFactory(error=ConnectionError("refused")))

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.status, CYCLE_DEFERRED)
        self.assertEqual(self.checkpoints.writes, [])

    def test_wrong_chain_id_defers(self):
        use_case = self._build(rpc_factory=FakeRpcFactory(FakeChainRpc(chain_id=8453)))

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.status, CYCLE_DEFERRED)
        self.assertIn("8453", result.error or "")

    def test_head_failure_defers(self):
        use_case = self._build(rpc_factory=FakeRpcFactory(FakeChainRpc(head_error=TimeoutError("slow"))))

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.status, CYCLE_DEFERRED)
        self.assertEqual(self.checkpoints.values["ethereum"], 100)

    def test_pool_failure_advances_and_records_gap_by_default(self):
        use_case = self._build(harvest=FakeHarvestSwaps({POOL_A}))

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.failed_pools, (POOL_A,))
        self.assertEqual(self.checkpoints.values["ethereum"], 110)
        self.assertEqual(self.observer.failed_swaps, [POOL_A])
        self.assertEqual(
            [(g.pool_address, g.from_block, g.to_block, g.reason) for g in self.gaps.gaps],
            [(POOL_A, 100, 109, "harvest_failed")],
        )
        # the other pool was still harvested
        self.assertIn((POOL_B, 100, 109), self.harvest.windows)

    def test_pool_failure_holds_checkpoint_under_hold_policy(self):
        use_case = self._build(harvest=FakeHarvestSwaps({POOL_A}), policy=POLICY_HOLD)

        result = use_case.execute(RunChainCycleInput(chain=_chain()))

        self.assertEqual(result.next_from_block, 100)
        self.assertEqual(self.checkpoints.writes, [])
        self.assertEqual(self.gaps.gaps, [])

    def test_invalid_factory_propagates(self):
        use_case = self._build(discover=FakeDiscoverPools([], error=InvalidFactoryAddressError("zero")))

        with self.assertRaises(InvalidFactoryAddressError):
            use_case.execute(RunChainCycleInput(chain=_chain()))

    def test_checkpoint_never_decreases_over_cycles(self):
        use_case = self._build()
        seen = []
        for _ in range(12):
            use_case.execute(RunChainCycleInput(chain=_chain()))
            seen.append(self.checkpoints.values["ethereum"])

        self.assertEqual(seen, sorted(seen))
        self.assertEqual(seen[-1], 201)


class FakeRunChainCycle:
    def __init__(self, errors: dict[str, Exception] | None = None):
        self._errors = errors or {}
        self.calls: list[str] = []

    def execute(self, command: RunChainCycleInput) -> RunChainCycleOutput:
        self.calls.append(command.chain.key)
        error = self._errors.get(command.chain.key)
        if error is not None:
            raise error
        return RunChainCycleOutput(chain_key=command.chain.key, status=CYCLE_INDEXED)


class IndexerOrchestratorTests(unittest.TestCase):
    def _build(self, chains: list[ChainConfig], cycle: FakeRunChainCycle) -> IndexerOrchestrator:
        self.sleeps: list[float] = []
        self.checkpoints = InMemoryCheckpoints()
        return IndexerOrchestrator(
            chains={chain.key: chain for chain in chains},
            checkpoint_port=self.checkpoints,
            run_chain_cycle=cycle,
            chain_delay_seconds=1.5,
            sleep=self.sleeps.append,
        )

    def test_initialize_seeds_checkpoints_for_enabled_chains_only(self):
        orchestrator = self._build(
            [_chain(), _chain("base", 8453, rpc_url="")],
            FakeRunChainCycle(),
        )

        orchestrator.initialize()

        self.assertEqual(self.checkpoints.values, {"ethereum": 100})

    def test_round_visits_every_chain_and_paces(self):
        cycle = FakeRunChainCycle()
        orchestrator = self._build([_chain(), _chain("base", 8453)], cycle)

        results = orchestrator.run_round()

        self.assertEqual(cycle.calls, ["ethereum", "base"])
        self.assertEqual(len(results), 2)
        self.assertEqual(self.sleeps, [1.5, 1.5])

    def test_configuration_error_disables_chain_permanently(self):
        cycle = FakeRunChainCycle({"ethereum": InvalidFactoryAddressError("zero factory")})
        orchestrator = self._build([_chain(), _chain("base", 8453)], cycle)

        orchestrator.run_round()
        orchestrator.run_round()

        self.assertEqual(cycle.calls, ["ethereum", "base", "base"])
        self.assertEqual([c.key for c in orchestrator.active_chains()], ["base"])

    def test_unexpected_error_is_contained_and_chain_retried(self):
        cycle = FakeRunChainCycle({"ethereum": RuntimeError("boom")})
        orchestrator = self._build([_chain(), _chain("base", 8453)], cycle)

        first = orchestrator.run_round()
        orchestrator.run_round()

        self.assertEqual([r.chain_key for r in first], ["base"])
        self.assertEqual(cycle.calls.count("ethereum"), 2)


if __name__ == "__main__":
    unittest.main()
