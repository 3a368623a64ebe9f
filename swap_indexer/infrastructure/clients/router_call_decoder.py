from __future__ import annotations

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from web3 import Web3


# Universal Router entry points.
_FUNCTIONS: dict[str, tuple[str, list[str]]] = {}
for _signature, _name, _types in (
    ("execute(bytes,bytes[])", "execute", ["bytes", "bytes[]"]),
    ("execute(bytes,bytes[],uint256)", "execute", ["bytes", "bytes[]", "uint256"]),
):
    _FUNCTIONS[Web3.keccak(text=_signature).hex().removeprefix("0x")[:8]] = (_name, _types)


class UniversalRouterCallDecoder:
    def function_name(self, call_data: str) -> str | None:
        raw = (call_data or "").removeprefix("0x").lower()
        if len(raw) < 8:
            return None
        entry = _FUNCTIONS.get(raw[:8])
        if entry is None:
            return None

        name, types = entry
        try:
            decode(types, bytes.fromhex(raw[8:]))
        except (DecodingError, ValueError) as exc:
            raise ValueError(f"Malformed {name} call data: {exc}") from exc
        return name
