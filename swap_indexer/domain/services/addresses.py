from __future__ import annotations

import re

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_address(value: object) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def is_zero_address(value: str | None) -> bool:
    return not value or value.lower() == ZERO_ADDRESS


def canonical_pair(token_a: str, token_b: str) -> tuple[str, str]:
    """Order a pair the way the factory keys pools: lower address first."""
    a = token_a.lower()
    b = token_b.lower()
    return (a, b) if a < b else (b, a)


def pair_key(token_a: str, token_b: str) -> str:
    token0, token1 = canonical_pair(token_a, token_b)
    return f"{token0}:{token1}"
