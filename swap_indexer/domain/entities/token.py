from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TokenListEntry:
    address: str
    symbol: str
    decimals: int | None = None


@dataclass(frozen=True)
class TokenUniverse:
    """Curated tokens of interest for one chain, keyed by lowercase address."""

    entries: tuple[TokenListEntry, ...] = ()
    _by_address: dict[str, TokenListEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        by_address = {entry.address.lower(): entry for entry in self.entries}
        object.__setattr__(self, "_by_address", by_address)

    def __len__(self) -> int:
        return len(self.entries)

    def contains(self, address: str | None) -> bool:
        if not address:
            return False
        return address.lower() in self._by_address

    def symbol_for(self, address: str, default: str = "UNKNOWN") -> str:
        entry = self._by_address.get(address.lower())
        return entry.symbol if entry is not None else default

    def decimals_for(self, address: str) -> int | None:
        entry = self._by_address.get(address.lower())
        return entry.decimals if entry is not None else None

    @property
    def addresses(self) -> frozenset[str]:
        return frozenset(self._by_address)
