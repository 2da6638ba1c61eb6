"""Retry schedule for upstream calls.

The schedule is deterministic: the jitter term is a fixed fraction of the
base delay, so the delays for a given base are known in advance:

    base 0.25s -> 0.325s, 0.575s, 1.075s for attempts 0, 1, 2
"""

from __future__ import annotations

from dataclasses import dataclass, replace

JITTER_FACTOR = 0.3
DEFAULT_MAX_ATTEMPTS = 4
DEFAULT_BASE_DELAY = 0.25


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after the given 0-based attempt fails."""
    return (2**attempt) * base_delay + JITTER_FACTOR * base_delay


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


@dataclass(frozen=True)
class RetryState:
    """Position in the retry loop of one call."""

    attempt: int = 0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    @property
    def exhausted(self) -> bool:
        """True when the current attempt is the last one allowed."""
        return self.attempt >= self.max_attempts - 1

    def delay(self) -> float:
        return backoff_delay(self.attempt, self.base_delay)

    def next(self) -> RetryState:
        return replace(self, attempt=self.attempt + 1)
