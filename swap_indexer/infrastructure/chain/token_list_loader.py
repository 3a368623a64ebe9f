from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from swap_indexer.domain.entities.chain import ChainConfig
from swap_indexer.domain.entities.token import TokenListEntry, TokenUniverse
from swap_indexer.domain.exceptions import ChainConfigurationError
from swap_indexer.domain.services.addresses import is_address
from swap_indexer.infrastructure.chain.schemas import TokenEntrySchema, TokenListSchema


logger = logging.getLogger(__name__)


class JsonTokenListLoader:
    """Loads a chain's token universe; a cached list is re-read once its file changes."""

    def __init__(self):
        self._cache: dict[str, tuple[int, TokenUniverse]] = {}

    def load(self, chain: ChainConfig) -> TokenUniverse:
        path = chain.token_list_path
        try:
            mtime_ns = Path(path).stat().st_mtime_ns
        except OSError as exc:
            raise ChainConfigurationError(f"Unable to load token list {path}: {exc}") from exc
        cached = self._cache.get(path)
        if cached is not None and cached[0] == mtime_ns:
            return cached[1]
        universe = self.load_path(path, chain_key=chain.key)
        self._cache[path] = (mtime_ns, universe)
        return universe

    def load_path(self, path: str | Path, *, chain_key: str = "") -> TokenUniverse:
        token_path = Path(path)
        try:
            with token_path.open("r", encoding="utf-8") as handle:
                raw = json.load(handle)
            token_list = TokenListSchema.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise ChainConfigurationError(f"Unable to load token list {token_path}: {exc}") from exc

        entries: list[TokenListEntry] = []
        seen: set[str] = set()
        for raw_entry in token_list.tokens:
            try:
                token = TokenEntrySchema.model_validate(raw_entry)
            except ValidationError as exc:
                logger.warning("token_list: invalid_entry chain=%s entry=%s error=%s", chain_key, raw_entry, exc)
                continue
            if not is_address(token.address):
                logger.warning("token_list: invalid_address chain=%s address=%s", chain_key, token.address)
                continue
            address = token.address.lower()
            if address in seen:
                continue
            seen.add(address)
            entries.append(TokenListEntry(address=address, symbol=token.symbol, decimals=token.decimals))

        logger.info("token_list: loaded chain=%s path=%s tokens=%s", chain_key, token_path, len(entries))
        return TokenUniverse(entries=tuple(entries))
