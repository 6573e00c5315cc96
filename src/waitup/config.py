"""Configuration loading from environment variables.

Every setting can come from the environment (or a ``.env`` file) using the
``WAITUP_`` prefix. Command-line flags override these values.

Environment variables:
- WAITUP_TIMEOUT: Overall deadline, e.g. ``30s`` or ``2m`` (default: 30s)
- WAITUP_INTERVAL: Initial retry interval (default: 1s)
- WAITUP_MAX_INTERVAL: Maximum retry interval (default: 30s)
- WAITUP_CONNECTION_TIMEOUT: Per-attempt timeout (default: 10s)
- WAITUP_RETRY_LIMIT: Maximum attempts per target (default: unlimited)
- WAITUP_EXPECT_STATUS: Expected HTTP status for URL targets (default: 200)
- WAITUP_SECURITY_PROFILE: none, default, development or production (default: none)
- WAITUP_RATE_LIMIT: Attempts per minute per target (default: unlimited)
- WAITUP_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: WARNING)
- WAITUP_LOG_JSON: Emit JSON log lines (default: false)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from waitup.cancellation import CancellationToken
from waitup.durations import format_duration, parse_duration
from waitup.errors import InvalidDurationError
from waitup.logging import get_logger
from waitup.rate_limiter import RateLimiter
from waitup.security import SecurityValidator
from waitup.types import WaitConfig

logger = get_logger(__name__)

__all__ = ["Config", "load_config"]

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Valid security profiles
VALID_SECURITY_PROFILES = frozenset({"none", "default", "development", "production"})

# HTTP status bounds
MIN_STATUS = 100
MAX_STATUS = 599


@dataclass(frozen=True)
class Config:
    """Tool configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation. Durations are seconds.
    """

    # Timing
    timeout: float = 30.0
    interval: float = 1.0
    max_interval: float = 30.0
    connection_timeout: float = 10.0
    retry_limit: int | None = None  # None means retry until the deadline

    # HTTP targets
    expect_status: int = 200

    # Policy
    security_profile: str = "none"
    rate_limit: int | None = None  # attempts per minute per target

    # Logging
    log_level: str = "WARNING"
    log_json: bool = False

    def security_validator(self) -> SecurityValidator | None:
        """Build the validator for ``security_profile``, or None when disabled."""
        return SecurityValidator.for_profile(self.security_profile)

    def to_wait_config(
        self,
        wait_for_any: bool = False,
        cancellation_token: CancellationToken | None = None,
    ) -> WaitConfig:
        """Build the run policy described by this configuration.

        Args:
            wait_for_any: Succeed on the first reachable target.
            cancellation_token: Shared token for cooperative cancellation.

        Returns:
            A new WaitConfig with a fresh rate limiter, if one is configured.
        """
        return WaitConfig(
            timeout=self.timeout,
            initial_interval=self.interval,
            max_interval=max(self.max_interval, self.interval),
            connection_timeout=self.connection_timeout,
            max_retries=self.retry_limit,
            wait_for_any=wait_for_any,
            cancellation_token=cancellation_token,
            security_validator=self.security_validator(),
            rate_limiter=RateLimiter.from_config(self),
        )


def _parse_duration(value: str, name: str, default: float) -> float:
    """Parse a duration string with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed duration in seconds, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        return parse_duration(value)
    except InvalidDurationError as e:
        logger.warning(
            "Invalid %s: %s, using default %s", name, e.reason, format_duration(default)
        )
        return default


def _parse_optional_positive_int(value: str, name: str) -> int | None:
    """Parse a string as an optional positive integer.

    Args:
        value: The string value to parse. Empty means unset.
        name: The name of the setting (for error messages).

    Returns:
        The parsed positive integer, or None if unset or invalid.

    Logs a warning if the value is invalid.
    """
    if not value.strip():
        return None
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Invalid %s: '%s' is not a valid integer, ignoring", name, value)
        return None
    if parsed <= 0:
        logger.warning("Invalid %s: %d is not positive, ignoring", name, parsed)
        return None
    return parsed


def _parse_status(value: str, name: str, default: int) -> int:
    """Parse a string as an HTTP status code (MIN_STATUS-MAX_STATUS).

    Logs a warning and returns ``default`` if the value is invalid.
    """
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d", name, value, default
        )
        return default
    if parsed < MIN_STATUS or parsed > MAX_STATUS:
        logger.warning(
            "Invalid %s: %d is not a valid HTTP status (must be %d-%d), using default %d",
            name,
            parsed,
            MIN_STATUS,
            MAX_STATUS,
            default,
        )
        return default
    return parsed


def _validate_log_level(value: str, default: str = "WARNING") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.

    Logs a warning if the value is invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logger.warning(
            "Invalid WAITUP_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _validate_security_profile(value: str, default: str = "none") -> str:
    normalized = value.strip().lower()
    if normalized not in VALID_SECURITY_PROFILES:
        logger.warning(
            "Invalid WAITUP_SECURITY_PROFILE: '%s' is not valid, using default '%s'. "
            "Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_SECURITY_PROFILES)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - Durations must parse with ``parse_duration`` and be non-negative
    - Retry and rate limits must be positive integers
    - WAITUP_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    defaults = Config()

    timeout = _parse_duration(
        os.getenv("WAITUP_TIMEOUT", "30s"), "WAITUP_TIMEOUT", defaults.timeout
    )
    interval = _parse_duration(
        os.getenv("WAITUP_INTERVAL", "1s"), "WAITUP_INTERVAL", defaults.interval
    )
    max_interval = _parse_duration(
        os.getenv("WAITUP_MAX_INTERVAL", "30s"), "WAITUP_MAX_INTERVAL", defaults.max_interval
    )
    connection_timeout = _parse_duration(
        os.getenv("WAITUP_CONNECTION_TIMEOUT", "10s"),
        "WAITUP_CONNECTION_TIMEOUT",
        defaults.connection_timeout,
    )

    retry_limit = _parse_optional_positive_int(
        os.getenv("WAITUP_RETRY_LIMIT", ""), "WAITUP_RETRY_LIMIT"
    )
    rate_limit = _parse_optional_positive_int(
        os.getenv("WAITUP_RATE_LIMIT", ""), "WAITUP_RATE_LIMIT"
    )

    expect_status = _parse_status(
        os.getenv("WAITUP_EXPECT_STATUS", "200"), "WAITUP_EXPECT_STATUS", defaults.expect_status
    )

    security_profile = _validate_security_profile(os.getenv("WAITUP_SECURITY_PROFILE", "none"))

    log_level = _validate_log_level(os.getenv("WAITUP_LOG_LEVEL", "WARNING"))
    log_json = _parse_bool(os.getenv("WAITUP_LOG_JSON", ""))

    return Config(
        timeout=timeout,
        interval=interval,
        max_interval=max_interval,
        connection_timeout=connection_timeout,
        retry_limit=retry_limit,
        expect_status=expect_status,
        security_profile=security_profile,
        rate_limit=rate_limit,
        log_level=log_level,
        log_json=log_json,
    )
