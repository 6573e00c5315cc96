"""Retry interval strategies for the single-target prober.

The default strategy grows the sleep between attempts by 1.5x up to a cap.
Intervals are float seconds truncated to whole milliseconds, so an interval
of zero stays zero; the prober applies its own minimum sleep floor.

Extensibility:
    Any object satisfying the ``RetryStrategy`` protocol can be passed to
    ``Prober``. ``LinearBackoffStrategy`` is provided as an alternative.
"""

from __future__ import annotations

import math
from typing import Protocol, runtime_checkable

__all__ = [
    "BACKOFF_MULTIPLIER",
    "ExponentialBackoffStrategy",
    "LinearBackoffStrategy",
    "RetryStrategy",
    "next_interval",
]

BACKOFF_MULTIPLIER = 1.5
DEFAULT_MAX_INTERVAL = 30.0


def _whole_millis(seconds: float) -> float:
    return math.floor(seconds * 1000 + 1e-6) / 1000


def next_interval(current: float, maximum: float, multiplier: float = BACKOFF_MULTIPLIER) -> float:
    """Return the interval that follows ``current``.

    Computes ``min(current * multiplier, maximum)`` in whole milliseconds.
    With a multiplier of at least 1 the sequence never decreases until it
    reaches the cap.

    Args:
        current: Current interval in seconds.
        maximum: Upper bound in seconds.
        multiplier: Growth factor.

    Returns:
        Next interval in seconds.
    """
    grown = current * multiplier
    if not math.isfinite(grown) or grown < 0:
        return 0.0
    return min(_whole_millis(grown), maximum)


@runtime_checkable
class RetryStrategy(Protocol):
    """Protocol for computing the sleep between probe attempts."""

    name: str

    def next_interval(self, current: float) -> float:
        """Return the interval to use after ``current``."""
        ...  # pragma: no cover

    def should_retry(self, attempt: int, max_retries: int | None) -> bool:
        """Return False once ``attempt`` has reached ``max_retries``."""
        ...  # pragma: no cover

    def reset(self) -> None:
        """Forget any per-run state."""
        ...  # pragma: no cover


class ExponentialBackoffStrategy:
    """Multiply the interval by ``multiplier`` on every retry, up to ``max_interval``."""

    name = "exponential"

    def __init__(
        self, multiplier: float = BACKOFF_MULTIPLIER, max_interval: float = DEFAULT_MAX_INTERVAL
    ) -> None:
        if multiplier < 1.0:
            raise ValueError(f"multiplier must be >= 1.0, got {multiplier}")
        self.multiplier = multiplier
        self.max_interval = max_interval

    def next_interval(self, current: float) -> float:
        return next_interval(current, self.max_interval, self.multiplier)

    def should_retry(self, attempt: int, max_retries: int | None) -> bool:
        return max_retries is None or attempt < max_retries

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return (
            f"ExponentialBackoffStrategy(multiplier={self.multiplier}, "
            f"max_interval={self.max_interval})"
        )


class LinearBackoffStrategy:
    """Add a fixed ``increment`` to the interval on every retry, up to ``max_interval``."""

    name = "linear"

    def __init__(self, increment: float = 1.0, max_interval: float = DEFAULT_MAX_INTERVAL) -> None:
        if increment < 0:
            raise ValueError(f"increment must be >= 0, got {increment}")
        self.increment = increment
        self.max_interval = max_interval

    def next_interval(self, current: float) -> float:
        return min(_whole_millis(current + self.increment), self.max_interval)

    def should_retry(self, attempt: int, max_retries: int | None) -> bool:
        return max_retries is None or attempt < max_retries

    def reset(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"LinearBackoffStrategy(increment={self.increment}, max_interval={self.max_interval})"
