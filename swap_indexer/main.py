from __future__ import annotations

import argparse
import logging
import sys

from swap_indexer.application.dto.apply_volume import RebuildAggregatesInput
from swap_indexer.deps import build_orchestrator, build_rebuild_aggregates, get_db_engine
from swap_indexer.infrastructure.chain.registry import load_chains
from swap_indexer.infrastructure.chain.token_list_loader import JsonTokenListLoader
from swap_indexer.infrastructure.db.engine import Base
from swap_indexer.infrastructure.db.models import indexer as _models  # noqa: F401
from swap_indexer.shared.config import Settings, get_settings


logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(settings: Settings) -> int:
    chains = load_chains(settings.chains_config_path)
    engine = get_db_engine(settings)
    Base.metadata.create_all(engine)
    orchestrator = build_orchestrator(settings, chains, engine=engine)
    logger.info("main: indexer_starting chains=%s", ",".join(sorted(chains)))
    orchestrator.run_forever()
    return 0


def _rebuild_aggregates(settings: Settings, chain_key: str) -> int:
    chains = load_chains(settings.chains_config_path)
    chain = chains.get(chain_key)
    if chain is None:
        logger.error("main: unknown_chain chain=%s known=%s", chain_key, ",".join(sorted(chains)))
        return 2

    engine = get_db_engine(settings)
    Base.metadata.create_all(engine)
    universe = JsonTokenListLoader().load(chain)
    result = build_rebuild_aggregates(settings, engine=engine).execute(
        RebuildAggregatesInput(
            chain_id=chain.chain_id,
            token_universe=universe,
            page_size=settings.replay_page_size,
        )
    )
    logger.info(
        "main: aggregates_rebuilt chain=%s chain_id=%s replayed=%s rejected=%s",
        chain.key,
        result.chain_id,
        result.replayed,
        result.rejected,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="swap-indexer", description="Multi-chain Uniswap v3 swap indexer.")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Index every enabled chain until interrupted (default).")
    rebuild = subparsers.add_parser("rebuild-aggregates", help="Rebuild volume aggregates from the swap ledger.")
    rebuild.add_argument("--chain", required=True, help="Chain key from the registry, e.g. ethereum.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    _configure_logging(settings.log_level)
    try:
        if args.command == "rebuild-aggregates":
            return _rebuild_aggregates(settings, args.chain)
        return _run(settings)
    except KeyboardInterrupt:
        logger.info("main: interrupted")
        return 0
    except Exception as exc:  # noqa: BLE001
        logger.exception("main: fatal_error error=%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
