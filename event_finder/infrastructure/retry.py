"""Retry policy applied to outbound provider calls."""

from __future__ import annotations

import random
from dataclasses import dataclass

RETRYABLE_STATUS_CODES = frozenset({408, 429})


def is_retryable_status(status_code: int | None) -> bool:
    """Return whether a provider response status is worth retrying.

    ``None`` stands for a failure without a response (timeout, connection
    reset) and is retryable.
    """

    if status_code is None:
        return True
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code < 600


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff with a cap and proportional jitter."""

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 8.0
    jitter_ratio: float = 0.1

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must not be negative")

    def should_retry(self, attempt: int, status_code: int | None) -> bool:
        """``attempt`` is the one-based number of the attempt that just failed."""

        return attempt < self.max_attempts and is_retryable_status(status_code)

    def delay_for(self, attempt: int, *, include_jitter: bool = True) -> float:
        """Delay before retrying after the failed ``attempt`` (one-based)."""

        base = min(self.base_delay * (2 ** max(attempt - 1, 0)), self.max_delay)
        if include_jitter and base > 0:
            return base + random.uniform(0, base * self.jitter_ratio)
        return float(base)


__all__ = ["RETRYABLE_STATUS_CODES", "RetryPolicy", "is_retryable_status"]
