"""Policy gate run in front of every connection attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from waitup.rate_limiter import RateLimiter
    from waitup.security import SecurityValidator
    from waitup.target import Target
    from waitup.types import WaitConfig

__all__ = ["PolicyGate"]


@dataclass(frozen=True)
class PolicyGate:
    """Composes the optional security validator and rate limiter.

    The validator always runs first, so a target rejected by policy never
    consumes rate-limit budget. Either check raising a ``PolicyError``
    short-circuits the attempt.

    Attributes:
        security_validator: Host/port policy, or None to skip.
        rate_limiter: Shared sliding-window limiter, or None to skip.
    """

    security_validator: SecurityValidator | None = None
    rate_limiter: RateLimiter | None = None

    @classmethod
    def from_config(cls, config: WaitConfig) -> PolicyGate:
        return cls(
            security_validator=config.security_validator,
            rate_limiter=config.rate_limiter,
        )

    @property
    def is_noop(self) -> bool:
        return self.security_validator is None and self.rate_limiter is None

    def check(self, target: Target) -> None:
        """Run the configured checks for one attempt.

        Args:
            target: The target about to be probed.

        Raises:
            SecurityViolationError: If the validator rejects the target.
            RateLimitExceededError: If the target's attempt budget is used up.
        """
        if self.security_validator is not None:
            self.security_validator.validate_target(target)
        if self.rate_limiter is not None:
            self.rate_limiter.check_rate_limit(target)
