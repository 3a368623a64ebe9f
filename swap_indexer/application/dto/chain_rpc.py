from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainTransaction:
    hash: str
    from_address: str | None
    to_address: str | None
    input: str | None


@dataclass(frozen=True)
class CallTrace:
    from_address: str | None
    to_address: str | None = None
