"""Configuration and result types for probe runs.

``WaitConfig`` is the immutable per-run policy handed to the orchestrator.
``TargetResult`` and ``WaitResult`` are the write-once values a run returns,
and ``ResultSummary`` condenses a ``WaitResult`` for display.

Usage:
    from waitup.types import WaitConfig

    config = WaitConfig(timeout=60.0, max_retries=10)
    faster = config.replace(initial_interval=0.1)
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from waitup.durations import format_duration
from waitup.errors import ConfigurationError

if TYPE_CHECKING:
    from waitup.cancellation import CancellationToken
    from waitup.rate_limiter import RateLimiter
    from waitup.security import SecurityValidator
    from waitup.target import Target

__all__ = [
    "ProbeState",
    "ResultSummary",
    "TargetResult",
    "WaitConfig",
    "WaitResult",
]


class ProbeState(StrEnum):
    """States of the single-target probe loop.

    Values:
        PROBING: Attempts are still being made.
        SUCCEEDED: An attempt reached the target.
        EXHAUSTED: ``max_retries`` attempts failed.
        TIMED_OUT: The overall deadline passed.
        REJECTED: The policy gate refused the target.
        CANCELLED: The shared cancellation token fired.
    """

    PROBING = "probing"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    TIMED_OUT = "timed_out"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not ProbeState.PROBING


@dataclass(frozen=True)
class WaitConfig:
    """Immutable policy for one run.

    All durations are seconds.

    Attributes:
        timeout: Overall deadline per target, measured from its first attempt.
        initial_interval: Sleep after the first failed attempt.
        max_interval: Cap on the sleep between attempts.
        connection_timeout: Cap on a single attempt.
        max_retries: Stop after this many attempts; None for no limit.
        wait_for_any: Succeed on the first reachable target instead of all of them.
        cancellation_token: Shared cooperative-cancellation handle.
        security_validator: Host/port policy checked before each attempt.
        rate_limiter: Per-target attempt limiter shared by all probers.
    """

    timeout: float = 30.0
    initial_interval: float = 1.0
    max_interval: float = 30.0
    connection_timeout: float = 10.0
    max_retries: int | None = None
    wait_for_any: bool = False
    cancellation_token: CancellationToken | None = field(default=None, compare=False)
    security_validator: SecurityValidator | None = None
    rate_limiter: RateLimiter | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for name in ("timeout", "initial_interval", "max_interval", "connection_timeout"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number of seconds, got {value}")
            if value < 0:
                raise ConfigurationError(f"{name} cannot be negative, got {value}")
        if self.initial_interval > self.max_interval:
            raise ConfigurationError(
                f"initial_interval ({self.initial_interval}) cannot exceed "
                f"max_interval ({self.max_interval})"
            )
        if self.max_retries is not None and (
            isinstance(self.max_retries, bool)
            or not isinstance(self.max_retries, int)
            or self.max_retries < 1
        ):
            raise ConfigurationError(
                f"max_retries must be a positive integer or None, got {self.max_retries!r}"
            )

    def replace(self, **changes: Any) -> WaitConfig:
        """Return a copy with ``changes`` applied (and re-validated)."""
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class TargetResult:
    """Outcome for one target.

    Attributes:
        target: The probed target.
        success: Whether the target became reachable.
        elapsed: Seconds from the target's first attempt to its terminal state.
        attempts: Connection attempts made.
        error: Human-readable cause when ``success`` is False.
        state: Terminal state of the probe loop.
    """

    target: Target
    success: bool
    elapsed: float
    attempts: int
    error: str | None = None
    state: ProbeState = ProbeState.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target.display(),
            "success": self.success,
            "elapsed_ms": round(self.elapsed * 1000),
            "attempts": self.attempts,
            "error": self.error,
        }


@dataclass(frozen=True)
class WaitResult:
    """Aggregate outcome of a run.

    Attributes:
        success: Whether the run's strategy was satisfied.
        elapsed: Wall-clock seconds for the whole run.
        attempts: Sum of attempts (ALL) or the winner's attempts (ANY).
        target_results: Every target's result (ALL) or only the winner (ANY).
    """

    success: bool
    elapsed: float
    attempts: int
    target_results: tuple[TargetResult, ...] = ()

    def successful_results(self) -> list[TargetResult]:
        return [r for r in self.target_results if r.success]

    def failed_results(self) -> list[TargetResult]:
        return [r for r in self.target_results if not r.success]

    def summary(self) -> ResultSummary:
        return ResultSummary.from_result(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON output shape."""
        return {
            "success": self.success,
            "elapsed_ms": round(self.elapsed * 1000),
            "total_attempts": self.attempts,
            "targets": [r.to_dict() for r in self.target_results],
        }


@dataclass(frozen=True)
class ResultSummary:
    """Condensed statistics for a ``WaitResult``.

    Attributes:
        total_targets: Number of target results.
        successful_count: Results that succeeded.
        failed_count: Results that failed.
        total_attempts: Attempts made across the run.
        total_elapsed: Wall-clock seconds for the run.
        fastest: Shortest elapsed time among successful results.
        slowest: Longest elapsed time among successful results.
    """

    total_targets: int
    successful_count: int
    failed_count: int
    total_attempts: int
    total_elapsed: float
    fastest: float | None = None
    slowest: float | None = None

    @classmethod
    def from_result(cls, result: WaitResult) -> ResultSummary:
        successes = [r.elapsed for r in result.target_results if r.success]
        return cls(
            total_targets=len(result.target_results),
            successful_count=len(successes),
            failed_count=len(result.target_results) - len(successes),
            total_attempts=result.attempts,
            total_elapsed=result.elapsed,
            fastest=min(successes) if successes else None,
            slowest=max(successes) if successes else None,
        )

    @property
    def success_rate(self) -> float:
        if self.total_targets == 0:
            return 100.0
        return self.successful_count / self.total_targets * 100.0

    def __str__(self) -> str:
        return (
            f"Targets: {self.successful_count}/{self.total_targets} successful, "
            f"{self.total_attempts} attempts, elapsed: {format_duration(self.total_elapsed)}"
        )
