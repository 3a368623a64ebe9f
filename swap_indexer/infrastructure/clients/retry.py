from __future__ import annotations

from collections.abc import Callable
import logging
import time
from typing import TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(base_delay_seconds: float, attempt: int) -> float:
    return base_delay_seconds * (2 ** (attempt - 1))


def call_with_retry(
    fn: Callable[[], T],
    *,
    attempts: int,
    base_delay_seconds: float,
    operation: str,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """Run ``fn`` up to ``attempts`` times, sleeping base * 2^(attempt-1) between tries.

    The last error is re-raised once attempts are exhausted.
    """
    total = max(1, attempts)
    wait = sleep or time.sleep
    for attempt in range(1, total + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt == total:
                raise
            delay = backoff_delay(base_delay_seconds, attempt)
            logger.warning(
                "retry: %s attempt=%s/%s retry_in_s=%.2f error=%s",
                operation,
                attempt,
                total,
                delay,
                exc,
            )
            wait(delay)
    raise AssertionError("unreachable")
