"""Exception hierarchy for waitup.

Errors fall into four groups:

- Construction errors are raised while building targets, durations or
  configuration, before any probing happens.
- Policy errors are raised by the policy gate in front of each attempt and are
  never retried.
- Connection failures describe why a single attempt failed. The prober
  records them as the target's last error and retries.
- ``WaitTimeoutError`` and ``WaitCancelledError`` are the only errors a caller
  of the orchestrator sees.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from waitup.types import WaitResult


class WaitForError(Exception):
    """Base class for all waitup errors."""

    pass


class InvalidTargetError(WaitForError, ValueError):
    """Raised when a target cannot be parsed or fails validation."""

    pass


class InvalidHostnameError(InvalidTargetError):
    """Raised when a hostname is not a valid DNS name or IP literal."""

    def __init__(self, hostname: str, reason: str) -> None:
        self.hostname = hostname
        self.reason = reason
        super().__init__(f"Invalid hostname {hostname!r}: {reason}")


class InvalidPortError(InvalidTargetError):
    """Raised when a port is outside 1-65535."""

    def __init__(self, port: object) -> None:
        self.port = port
        super().__init__(f"Invalid port {port!r}: must be between 1 and 65535")


class InvalidDurationError(WaitForError, ValueError):
    """Raised when a duration string cannot be parsed."""

    def __init__(self, value: str, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid duration {value!r}: {reason}")


class ConfigurationError(WaitForError, ValueError):
    """Raised when a WaitConfig or one of its collaborators is misconfigured."""

    pass


class PolicyError(WaitForError):
    """Base class for rejections raised by the policy gate."""

    pass


class SecurityViolationError(PolicyError):
    """Raised when a target violates the configured security policy."""

    pass


class RateLimitExceededError(PolicyError):
    """Raised when a target key has used up its per-minute attempt budget."""

    def __init__(self, key: str, limit: int) -> None:
        self.key = key
        self.limit = limit
        super().__init__(f"Rate limit exceeded for {key}: {limit} requests per minute")


class ConnectionFailure(WaitForError):
    """Base class for the failure of a single connection attempt."""

    pass


class DnsResolutionError(ConnectionFailure):
    """Raised when a hostname cannot be resolved to any address."""

    def __init__(self, host: str, reason: str) -> None:
        self.host = host
        self.reason = reason
        super().__init__(f"Failed to resolve {host}: {reason}")


class TcpConnectError(ConnectionFailure):
    """Raised when every resolved address refused the TCP connection."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Failed to connect to {host}:{port}: {reason}")


class ConnectTimeoutError(ConnectionFailure):
    """Raised when a single attempt exceeds its per-attempt timeout."""

    def __init__(self, target: str, timeout: float) -> None:
        self.target = target
        self.timeout = timeout
        super().__init__(f"Connection to {target} timed out after {round(timeout * 1000)}ms")


class HttpRequestError(ConnectionFailure):
    """Raised when the HTTP request fails below the status-code level."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"HTTP request to {url} failed: {reason}")


class UnexpectedStatusError(ConnectionFailure):
    """Raised when an HTTP target answers with a status other than the expected one."""

    def __init__(self, url: str, expected: int, actual: int) -> None:
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(f"Unexpected HTTP status from {url}: expected {expected}, got {actual}")


class WaitTimeoutError(WaitForError):
    """Raised by the orchestrator when the run did not succeed.

    The message says "Rejected by policy" instead of "Timeout waiting for"
    when ``rejected`` is set, i.e. every failed target was refused by the
    policy gate rather than left unreachable.

    Attributes:
        targets: Display strings of the targets that failed, in input order.
        result: The aggregate result, including every per-target outcome.
        rejected: Whether every failed target was refused by policy.
    """

    def __init__(
        self, targets: list[str], result: WaitResult | None = None, *, rejected: bool = False
    ) -> None:
        self.targets = targets
        self.result = result
        self.rejected = rejected
        prefix = "Rejected by policy:" if rejected else "Timeout waiting for"
        super().__init__(f"{prefix} {', '.join(targets)}")


class WaitCancelledError(WaitForError):
    """Raised when the shared cancellation token fires during a run."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super().__init__(message)


class CommandExecutionError(WaitForError):
    """Raised when the post-success command fails to start or exits non-zero."""

    def __init__(self, command: str, reason: str, returncode: int | None = None) -> None:
        self.command = command
        self.reason = reason
        self.returncode = returncode
        super().__init__(f"Command {command!r} failed: {reason}")
