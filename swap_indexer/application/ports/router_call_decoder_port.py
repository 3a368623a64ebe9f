from __future__ import annotations

from typing import Protocol


class RouterCallDecoderPort(Protocol):
    def function_name(self, call_data: str) -> str | None:
        """Name of the decoded router function, None when the selector is unknown.

        Raises ValueError when the selector matches but the arguments do not decode.
        """
        ...
