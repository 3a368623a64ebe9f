from __future__ import annotations

from collections.abc import Mapping
import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.exceptions import ChainConfigurationError
from swap_indexer.domain.services.addresses import is_address
from swap_indexer.infrastructure.chain.schemas import ChainEntrySchema, ChainRegistrySchema


logger = logging.getLogger(__name__)


def _env_override(env: Mapping[str, str], chain_key: str, suffix: str) -> str | None:
    value = env.get(f"{chain_key.upper()}_{suffix}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _to_chain_config(key: str, entry: ChainEntrySchema, *, base_dir: Path, env: Mapping[str, str]) -> ChainConfig:
    rpc_url = _env_override(env, key, "RPC_URL") or entry.rpc_url.strip()
    factory_address = _env_override(env, key, "FACTORY_ADDRESS") or entry.factory_address.strip()
    if not is_address(factory_address):
        # Discovery rejects it, which disables only this chain.
        logger.warning("chain_registry: invalid_factory chain=%s factory=%s", key, factory_address)

    token_list_path = Path(entry.token_list_path)
    if not token_list_path.is_absolute():
        token_list_path = base_dir / token_list_path

    routers: set[str] = set()
    for router in entry.known_routers:
        if not is_address(router):
            logger.warning("chain_registry: invalid_router chain=%s router=%s", key, router)
            continue
        routers.add(router.lower())

    return ChainConfig(
        key=key,
        chain_id=entry.chain_id,
        name=entry.name,
        rpc_url=rpc_url,
        factory_address=factory_address.lower(),
        token_list_path=str(token_list_path),
        known_routers=frozenset(routers),
        from_block=entry.from_block,
    )


def load_chains(path: str | Path, *, env: Mapping[str, str] | None = None) -> dict[str, ChainConfig]:
    """Read the chain registry file; ``<KEY>_RPC_URL`` and ``<KEY>_FACTORY_ADDRESS`` override entries."""
    registry_path = Path(path)
    environ = os.environ if env is None else env
    try:
        with registry_path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        registry = ChainRegistrySchema.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ChainConfigurationError(f"Unable to load chain registry {registry_path}: {exc}") from exc

    chains: dict[str, ChainConfig] = {}
    seen_ids: dict[int, str] = {}
    for key, entry in registry.chains.items():
        if entry.chain_id in seen_ids:
            raise ChainConfigurationError(
                f"Chains '{seen_ids[entry.chain_id]}' and '{key}' share chain_id={entry.chain_id}."
            )
        seen_ids[entry.chain_id] = key
        chain = _to_chain_config(key, entry, base_dir=registry_path.parent, env=environ)
        chains[key] = chain
        logger.info(
            "chain_registry: chain_loaded chain=%s chain_id=%s enabled=%s routers=%s",
            key,
            chain.chain_id,
            chain.enabled,
            len(chain.known_routers),
        )
    return chains
