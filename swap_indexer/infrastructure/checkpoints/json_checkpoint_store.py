from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tempfile

from swap_indexer.domain.entities.checkpoint import Checkpoint
from swap_indexer.domain.exceptions import ChainConfigurationError, CheckpointRegressionError


logger = logging.getLogger(__name__)


class JsonCheckpointStore:
    """One ``<chain_key>.json`` file holding ``{"fromBlock": n}`` per chain."""

    def __init__(self, directory: str | Path):
        self._directory = Path(directory)

    def path_for(self, chain_key: str) -> Path:
        return self._directory / f"{chain_key}.json"

    def ensure(self, chain_key: str, from_block: int) -> Checkpoint:
        path = self.path_for(chain_key)
        if path.exists():
            return self.read(chain_key)
        checkpoint = Checkpoint(from_block=max(0, int(from_block)))
        self._write_file(path, checkpoint)
        logger.info(
            "checkpoint_store: seeded chain=%s from_block=%s path=%s",
            chain_key,
            checkpoint.from_block,
            path,
        )
        return checkpoint

    def read(self, chain_key: str) -> Checkpoint:
        path = self.path_for(chain_key)
        if not path.exists():
            raise ChainConfigurationError(f"No checkpoint seeded for chain '{chain_key}' at {path}.")
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        from_block = payload.get("fromBlock") if isinstance(payload, dict) else None
        if isinstance(from_block, bool) or not isinstance(from_block, int) or from_block < 0:
            raise ValueError(f"Invalid checkpoint file {path}: fromBlock={from_block!r}")
        return Checkpoint(from_block=from_block)

    def write(self, chain_key: str, checkpoint: Checkpoint) -> None:
        path = self.path_for(chain_key)
        if path.exists():
            current = self.read(chain_key)
            if checkpoint.from_block < current.from_block:
                raise CheckpointRegressionError(
                    f"Checkpoint for '{chain_key}' cannot move from {current.from_block} "
                    f"back to {checkpoint.from_block}."
                )
        self._write_file(path, checkpoint)
        logger.debug("checkpoint_store: written chain=%s from_block=%s", chain_key, checkpoint.from_block)

    def _write_file(self, path: Path, checkpoint: Checkpoint) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.stem}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({"fromBlock": checkpoint.from_block}, handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
