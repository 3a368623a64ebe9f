from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: str) -> bool:
    value = (_env(name, default) or "").strip().lower()
    return value in {"1", "true", "yes", "on"}


def _int_tuple(name: str, default: str) -> tuple[int, ...]:
    value = _env(name, default) or ""
    return tuple(int(part.strip()) for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    postgres_dsn: str
    chains_config_path: str
    checkpoint_dir: str
    block_batch_size: int
    chain_delay_seconds: float
    catchup_threshold_blocks: int
    catchup_lag_blocks: int
    fee_tiers: tuple[int, ...]
    rpc_timeout_seconds: float
    rpc_max_retries: int
    rpc_retry_base_delay_seconds: float
    rpc_trace_max_retries: int
    rpc_min_interval_ms: int
    harvest_failure_policy: str
    record_indexing_gaps: bool
    replay_page_size: int
    log_level: str


def get_settings() -> Settings:
    return Settings(
        postgres_dsn=_env("POSTGRES_DSN", ""),
        chains_config_path=_env("CHAINS_CONFIG_PATH", "config/chains.json"),
        checkpoint_dir=_env("CHECKPOINT_DIR", "config/blocks"),
        block_batch_size=int(_env("BLOCK_BATCH_SIZE", "10")),
        chain_delay_seconds=float(_env("CHAIN_DELAY_SECONDS", "1")),
        catchup_threshold_blocks=int(_env("CATCHUP_THRESHOLD_BLOCKS", "10000")),
        catchup_lag_blocks=int(_env("CATCHUP_LAG_BLOCKS", "1000")),
        fee_tiers=_int_tuple("FEE_TIERS", "500,3000,10000"),
        rpc_timeout_seconds=float(_env("RPC_TIMEOUT_SECONDS", "30")),
        rpc_max_retries=int(_env("RPC_MAX_RETRIES", "5")),
        rpc_retry_base_delay_seconds=float(_env("RPC_RETRY_BASE_DELAY_SECONDS", "2")),
        rpc_trace_max_retries=int(_env("RPC_TRACE_MAX_RETRIES", "3")),
        rpc_min_interval_ms=int(_env("RPC_MIN_INTERVAL_MS", "0")),
        harvest_failure_policy=(_env("HARVEST_FAILURE_POLICY", "advance") or "advance").strip().lower(),
        record_indexing_gaps=_bool("RECORD_INDEXING_GAPS", "true"),
        replay_page_size=int(_env("REPLAY_PAGE_SIZE", "1000")),
        log_level=(_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
