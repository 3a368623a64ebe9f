from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import time

from swap_indexer.application.dto.chain_cycle import RunChainCycleInput, RunChainCycleOutput
from swap_indexer.application.ports.checkpoint_port import CheckpointPort
from swap_indexer.application.use_cases.run_chain_cycle import RunChainCycleUseCase
from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.exceptions import ChainConfigurationError


logger = logging.getLogger(__name__)


class IndexerOrchestrator:
    """Drives every enabled chain round-robin, forever, with a fixed pace between chains.

    Chain- and pool-level failures are contained here; a chain whose
    configuration is rejected is disabled for the lifetime of the process.
    """

    def __init__(
        self,
        *,
        chains: Mapping[str, ChainConfig],
        checkpoint_port: CheckpointPort,
        run_chain_cycle: RunChainCycleUseCase,
        chain_delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._chains = dict(chains)
        self._checkpoint_port = checkpoint_port
        self._run_chain_cycle = run_chain_cycle
        self._chain_delay_seconds = chain_delay_seconds
        self._sleep = sleep
        self._disabled: set[str] = set()

    def active_chains(self) -> list[ChainConfig]:
        return [
            chain
            for key, chain in self._chains.items()
            if chain.enabled and key not in self._disabled
        ]

    def initialize(self) -> None:
        for chain in self.active_chains():
            checkpoint = self._checkpoint_port.ensure(chain.key, chain.from_block)
            logger.info(
                "indexer: chain_ready chain=%s chain_id=%s from_block=%s",
                chain.key,
                chain.chain_id,
                checkpoint.from_block,
            )

    def run_forever(self) -> None:
        self.initialize()
        if not self.active_chains():
            logger.warning("indexer: no_enabled_chains")
        while True:
            if not self.active_chains():
                self._sleep(self._chain_delay_seconds)
                continue
            self.run_round()

    def run_round(self) -> list[RunChainCycleOutput]:
        results: list[RunChainCycleOutput] = []
        for chain in self.active_chains():
            result = self.run_chain(chain)
            if result is not None:
                results.append(result)
            self._sleep(self._chain_delay_seconds)
        return results

    def run_chain(self, chain: ChainConfig) -> RunChainCycleOutput | None:
        try:
            return self._run_chain_cycle.execute(RunChainCycleInput(chain=chain))
        except ChainConfigurationError as exc:
            logger.error(
                "indexer: chain_disabled chain=%s chain_id=%s error=%s",
                chain.key,
                chain.chain_id,
                exc,
            )
            self._disabled.add(chain.key)
        except Exception as exc:  # noqa: BLE001
            logger.exception(
                "indexer: index_chain_error chain=%s chain_id=%s error=%s",
                chain.key,
                chain.chain_id,
                exc,
            )
        return None
