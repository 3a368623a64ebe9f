from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
import logging

from swap_indexer.application.dto.apply_volume import ApplyVolumeInput
from swap_indexer.application.dto.harvest_swaps import HarvestSwapsInput, HarvestSwapsOutput
from swap_indexer.application.dto.resolve_user import ResolveUserInput
from swap_indexer.application.ports.chain_rpc_port import ChainRpcPort
from swap_indexer.application.ports.indexer_observer_port import IndexerObserverPort
from swap_indexer.application.ports.swap_ledger_port import SwapLedgerPort
from swap_indexer.application.use_cases.apply_volume import ApplyVolumeUseCase
from swap_indexer.application.use_cases.resolve_user import ResolveUserUseCase
from swap_indexer.domain.entities.swap import SwapEvent, SwapRecord
from swap_indexer.domain.entities.token import TokenUniverse
from swap_indexer.domain.exceptions import SwapHarvestError


logger = logging.getLogger(__name__)

DEFAULT_TOKEN_DECIMALS = 18


def _format_amount(raw: int, decimals: int) -> str:
    return str(Decimal(raw).scaleb(-decimals))


class HarvestSwapsUseCase:
    def __init__(
        self,
        *,
        swap_ledger_port: SwapLedgerPort,
        resolve_user: ResolveUserUseCase,
        apply_volume: ApplyVolumeUseCase,
        observer: IndexerObserverPort,
    ):
        self._swap_ledger_port = swap_ledger_port
        self._resolve_user = resolve_user
        self._apply_volume = apply_volume
        self._observer = observer
        self._decimals_cache: dict[tuple[int, str], int] = {}

    def execute(self, command: HarvestSwapsInput, *, chain_rpc: ChainRpcPort) -> HarvestSwapsOutput:
        pool = command.pool
        universe = command.token_universe
        if not universe.contains(pool.token0) and not universe.contains(pool.token1):
            logger.debug(
                "harvest_swaps: skip_pool_outside_universe chain_id=%s pool=%s",
                command.chain_id,
                pool.pool_address,
            )
            return HarvestSwapsOutput()

        self._observer.on_indexing_swaps(
            chain_id=command.chain_id,
            pool_address=pool.pool_address,
            from_block=command.from_block,
            to_block=command.to_block,
        )
        try:
            events = chain_rpc.get_swap_events(
                pool_address=pool.pool_address,
                from_block=command.from_block,
                to_block=command.to_block,
            )
        except Exception as exc:
            logger.error(
                "harvest_swaps: swap_query_failed chain_id=%s pool=%s from_block=%s to_block=%s error=%s",
                command.chain_id,
                pool.pool_address,
                command.from_block,
                command.to_block,
                exc,
            )
            self._observer.on_failed_process_swap(
                chain_id=command.chain_id,
                pool_address=pool.pool_address,
                error=f"Failed to query swaps: {exc}",
            )
            raise SwapHarvestError(
                f"Swap query failed for pool {pool.pool_address} "
                f"[{command.from_block}, {command.to_block}]: {exc}"
            ) from exc

        logger.debug(
            "harvest_swaps: fetched chain_id=%s pool=%s events=%s from_block=%s to_block=%s",
            command.chain_id,
            pool.pool_address,
            len(events),
            command.from_block,
            command.to_block,
        )

        output = HarvestSwapsOutput(fetched=len(events))
        timestamps: dict[int, datetime] = {}
        for event in events:
            output = self._process_event(
                command=command,
                event=event,
                chain_rpc=chain_rpc,
                timestamps=timestamps,
                output=output,
            )

        logger.info(
            "harvest_swaps: done chain_id=%s pool=%s fetched=%s persisted=%s duplicates=%s malformed=%s failed=%s aggregation_failures=%s",
            command.chain_id,
            pool.pool_address,
            output.fetched,
            output.persisted,
            output.duplicates,
            output.malformed,
            output.failed,
            output.aggregation_failures,
        )
        return output

    def _process_event(
        self,
        *,
        command: HarvestSwapsInput,
        event: SwapEvent,
        chain_rpc: ChainRpcPort,
        timestamps: dict[int, datetime],
        output: HarvestSwapsOutput,
    ) -> HarvestSwapsOutput:
        pool = command.pool
        if (
            not event.transaction_hash
            or not event.sender
            or event.amount0 is None
            or event.amount1 is None
        ):
            logger.warning(
                "harvest_swaps: malformed_event chain_id=%s pool=%s block=%s log_index=%s",
                command.chain_id,
                pool.pool_address,
                event.block_number,
                event.log_index,
            )
            return replace(output, malformed=output.malformed + 1)

        timestamp = self._block_timestamp(event.block_number, chain_rpc=chain_rpc, cache=timestamps)
        user_address = self._resolve_user.execute(
            ResolveUserInput(event=event, sender=event.sender, known_routers=command.known_routers),
            chain_rpc=chain_rpc,
        )

        record = SwapRecord(
            chain_id=command.chain_id,
            transaction_hash=event.transaction_hash,
            pool_address=pool.pool_address,
            user_address=user_address.lower(),
            token0=pool.token0,
            token1=pool.token1,
            amount0=event.amount0,
            amount1=event.amount1,
            block_number=event.block_number,
            timestamp=timestamp,
        )
        self._log_swap(record, sender=event.sender, universe=command.token_universe, chain_rpc=chain_rpc)

        try:
            inserted = self._swap_ledger_port.insert_swap(record)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "harvest_swaps: swap_upsert_failed chain_id=%s pool=%s tx=%s error=%s",
                command.chain_id,
                pool.pool_address,
                record.transaction_hash,
                exc,
            )
            self._observer.on_failed_process_swap(
                chain_id=command.chain_id,
                pool_address=pool.pool_address,
                error=f"Swap upsert failed: {exc}",
            )
            return replace(output, failed=output.failed + 1)

        if not inserted:
            logger.debug(
                "harvest_swaps: duplicate_swap chain_id=%s tx=%s",
                command.chain_id,
                record.transaction_hash,
            )
            return replace(output, duplicates=output.duplicates + 1)

        try:
            self._apply_volume.execute(
                ApplyVolumeInput(
                    user_address=record.user_address,
                    token0=record.token0,
                    token1=record.token1,
                    amount0=record.amount0,
                    amount1=record.amount1,
                    pool_address=record.pool_address,
                    chain_id=record.chain_id,
                    token_universe=command.token_universe,
                )
            )
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "harvest_swaps: volume_update_failed chain_id=%s pool=%s block=%s tx=%s error=%s",
                command.chain_id,
                pool.pool_address,
                record.block_number,
                record.transaction_hash,
                exc,
            )
            self._observer.on_failed_update_volumes(
                chain_id=command.chain_id,
                subject=pool.pool_address,
                error=str(exc),
            )
            return replace(
                output,
                persisted=output.persisted + 1,
                aggregation_failures=output.aggregation_failures + 1,
            )

        return replace(output, persisted=output.persisted + 1)

    def _block_timestamp(
        self,
        block_number: int,
        *,
        chain_rpc: ChainRpcPort,
        cache: dict[int, datetime],
    ) -> datetime:
        cached = cache.get(block_number)
        if cached is not None:
            return cached
        try:
            value = datetime.fromtimestamp(chain_rpc.get_block_timestamp(block_number), tz=timezone.utc)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "harvest_swaps: block_timestamp_failed block=%s error=%s",
                block_number,
                exc,
            )
            return datetime.now(timezone.utc)
        cache[block_number] = value
        return value

    def _token_decimals(self, token: str, *, chain_id: int, universe: TokenUniverse, chain_rpc: ChainRpcPort) -> int:
        listed = universe.decimals_for(token)
        if listed is not None:
            return listed
        key = (chain_id, token.lower())
        if key not in self._decimals_cache:
            try:
                self._decimals_cache[key] = chain_rpc.get_token_decimals(token)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "harvest_swaps: decimals_lookup_failed token=%s default=%s error=%s",
                    token,
                    DEFAULT_TOKEN_DECIMALS,
                    exc,
                )
                self._decimals_cache[key] = DEFAULT_TOKEN_DECIMALS
        return self._decimals_cache[key]

    def _log_swap(
        self,
        record: SwapRecord,
        *,
        sender: str,
        universe: TokenUniverse,
        chain_rpc: ChainRpcPort,
    ) -> None:
        if not logger.isEnabledFor(logging.INFO):
            return
        decimals0 = self._token_decimals(record.token0, chain_id=record.chain_id, universe=universe, chain_rpc=chain_rpc)
        decimals1 = self._token_decimals(record.token1, chain_id=record.chain_id, universe=universe, chain_rpc=chain_rpc)
        logger.info(
            "harvest_swaps: swap chain_id=%s pool=%s sender=%s user=%s amount0=%s %s amount1=%s %s block=%s tx=%s timestamp=%s",
            record.chain_id,
            record.pool_address,
            sender,
            record.user_address,
            _format_amount(record.amount0, decimals0),
            universe.symbol_for(record.token0),
            _format_amount(record.amount1, decimals1),
            universe.symbol_for(record.token1),
            record.block_number,
            record.transaction_hash,
            record.timestamp.isoformat(),
        )
