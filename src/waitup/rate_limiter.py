"""Per-target rate limiting for connection attempts.

This module caps how often any one endpoint is probed. Each target maps to a
key (``tcp://host:port`` or ``http://host:port``), and for every key the limiter
keeps the timestamps of the attempts admitted during the last 60 seconds. An
attempt is rejected once that count reaches the configured ceiling.

The implementation uses a single lock around the key map, so concurrent
probers checking the same key never double-count an admission. Stale
timestamps are pruned lazily: every check first looks at how long ago the
last full cleanup ran and sweeps all keys if that was more than the cleanup
interval ago. There is no background thread.

Usage:
    limiter = RateLimiter(max_requests_per_minute=30)

    try:
        limiter.check_rate_limit(target)
    except RateLimitExceededError:
        ...

    metrics = limiter.get_metrics()
    print(f"Rejected: {metrics['rejected_requests']}")
"""

from __future__ import annotations

import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from waitup.errors import ConfigurationError, RateLimitExceededError
from waitup.logging import get_logger

if TYPE_CHECKING:
    from waitup.config import Config
    from waitup.target import Target

logger = get_logger(__name__)

__all__ = ["RateLimiter", "RateLimiterMetrics"]

WINDOW_SECONDS: float = 60.0
DEFAULT_REQUESTS_PER_MINUTE: int = 60
DEFAULT_CLEANUP_INTERVAL: float = 300.0


@dataclass
class RateLimiterMetrics:
    """Metrics collected by the rate limiter.

    Attributes:
        total_requests: Total number of check_rate_limit() calls.
        allowed_requests: Number of attempts admitted.
        rejected_requests: Number of attempts rejected.
        cleanups: Number of lazy sweeps over all keys.
        warnings_issued: Number of times a key crossed the warning threshold.
    """

    total_requests: int = 0
    allowed_requests: int = 0
    rejected_requests: int = 0
    cleanups: int = 0
    warnings_issued: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_request(self, allowed: bool) -> None:
        with self._lock:
            self.total_requests += 1
            if allowed:
                self.allowed_requests += 1
            else:
                self.rejected_requests += 1

    def record_cleanup(self) -> None:
        with self._lock:
            self.cleanups += 1

    def record_warning(self) -> None:
        with self._lock:
            self.warnings_issued += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary for logging/monitoring."""
        with self._lock:
            return {
                "total_requests": self.total_requests,
                "allowed_requests": self.allowed_requests,
                "rejected_requests": self.rejected_requests,
                "cleanups": self.cleanups,
                "warnings_issued": self.warnings_issued,
            }


class RateLimiter:
    """Sliding-window rate limiter keyed by normalized target identity.

    One instance is shared by every prober in a run. All methods are
    thread-safe.

    Example:
        limiter = RateLimiter(max_requests_per_minute=2)
        limiter.check_rate_limit(target)  # ok
        limiter.check_rate_limit(target)  # ok
        limiter.check_rate_limit(target)  # raises RateLimitExceededError
    """

    def __init__(
        self,
        max_requests_per_minute: int = DEFAULT_REQUESTS_PER_MINUTE,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        warning_threshold: float = 0.8,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            max_requests_per_minute: Attempts admitted per key within any 60s window.
            cleanup_interval: Seconds between lazy sweeps of all keys.
            warning_threshold: Fraction of the ceiling at which a warning is logged.
            time_func: Monotonic clock, injectable for tests.
        """
        if isinstance(max_requests_per_minute, bool) or max_requests_per_minute < 1:
            raise ConfigurationError(
                f"max_requests_per_minute must be a positive integer, got {max_requests_per_minute!r}"
            )
        self._max_requests = max_requests_per_minute
        self._cleanup_interval = cleanup_interval
        self._warning_threshold = warning_threshold
        self._time = time_func
        self._lock = threading.Lock()
        self._requests: dict[str, deque[float]] = {}
        self._last_cleanup = time_func()
        self._metrics = RateLimiterMetrics()

    @classmethod
    def from_config(cls, config: Config) -> RateLimiter | None:
        """Create a rate limiter from application configuration.

        Args:
            config: Application configuration.

        Returns:
            Configured RateLimiter, or None when rate limiting is disabled.
        """
        if config.rate_limit is None:
            return None
        return cls(max_requests_per_minute=config.rate_limit)

    @property
    def max_requests_per_minute(self) -> int:
        return self._max_requests

    def check_rate_limit(self, target: Target) -> None:
        """Admit or reject one attempt against ``target``.

        Args:
            target: The target about to be probed.

        Raises:
            RateLimitExceededError: If the target's key already has
                ``max_requests_per_minute`` attempts in the last 60 seconds.
        """
        key = target.rate_limit_key()
        warn = False
        with self._lock:
            now = self._time()
            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup_locked(now)

            stamps = self._requests.setdefault(key, deque())
            _prune(stamps, now)

            if len(stamps) >= self._max_requests:
                allowed = False
            else:
                allowed = True
                stamps.append(now)
                warn = len(stamps) == max(1, int(self._max_requests * self._warning_threshold))

        self._metrics.record_request(allowed)
        if not allowed:
            logger.warning(
                "Rate limit exceeded for %s (%d/min) - attempt rejected", key, self._max_requests
            )
            raise RateLimitExceededError(key, self._max_requests)
        if warn:
            self._metrics.record_warning()
            logger.debug("Rate limit for %s approaching ceiling of %d/min", key, self._max_requests)

    def current_count(self, target: Target) -> int:
        """Return how many attempts for ``target`` fall inside the current window."""
        with self._lock:
            stamps = self._requests.get(target.rate_limit_key())
            if not stamps:
                return 0
            _prune(stamps, self._time())
            return len(stamps)

    def tracked_keys(self) -> int:
        """Return the number of keys currently held in memory."""
        with self._lock:
            return len(self._requests)

    def _cleanup_locked(self, now: float) -> None:
        """Prune every key and drop empty ones. Must be called with lock held."""
        for key in list(self._requests):
            stamps = self._requests[key]
            _prune(stamps, now)
            if not stamps:
                del self._requests[key]
        self._last_cleanup = now
        self._metrics.record_cleanup()

    def get_metrics(self) -> dict[str, Any]:
        """Get current rate limiter metrics.

        Returns:
            Dictionary with request counts and limits.
        """
        metrics = self._metrics.to_dict()
        metrics["limits"] = {
            "requests_per_minute": self._max_requests,
            "cleanup_interval": self._cleanup_interval,
        }
        metrics["tracked_keys"] = self.tracked_keys()
        return metrics

    def reset(self) -> None:
        """Forget all recorded attempts and metrics. Used for testing."""
        with self._lock:
            self._requests.clear()
            self._last_cleanup = self._time()
            self._metrics = RateLimiterMetrics()

    def __repr__(self) -> str:
        return f"RateLimiter(max_requests_per_minute={self._max_requests})"


def _prune(stamps: deque[float], now: float) -> None:
    cutoff = now - WINDOW_SECONDS
    while stamps and stamps[0] <= cutoff:
        stamps.popleft()
