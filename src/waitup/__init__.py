"""waitup - wait for TCP ports and HTTP endpoints to become ready."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("waitup")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from waitup.backoff import ExponentialBackoffStrategy, LinearBackoffStrategy, RetryStrategy
from waitup.cancellation import CancellationToken
from waitup.checker import ConnectionChecker, DefaultConnectionChecker
from waitup.durations import format_duration, parse_duration
from waitup.errors import (
    ConnectionFailure,
    PolicyError,
    WaitCancelledError,
    WaitForError,
    WaitTimeoutError,
)
from waitup.orchestrator import WaitForAllStrategy, WaitForAnyStrategy, wait_for_connection
from waitup.policy import PolicyGate
from waitup.prober import Prober, wait_for_single_target
from waitup.rate_limiter import RateLimiter
from waitup.security import SecurityValidator
from waitup.target import HttpTarget, Target, TcpTarget, http_target, parse_target, tcp_target
from waitup.types import ResultSummary, TargetResult, WaitConfig, WaitResult

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "CancellationToken",
    "ConnectionChecker",
    "ConnectionFailure",
    "DefaultConnectionChecker",
    "ExponentialBackoffStrategy",
    "HttpTarget",
    "LinearBackoffStrategy",
    "PolicyError",
    "PolicyGate",
    "Prober",
    "RateLimiter",
    "ResultSummary",
    "RetryStrategy",
    "SecurityValidator",
    "Target",
    "TargetResult",
    "TcpTarget",
    "WaitCancelledError",
    "WaitConfig",
    "WaitForAllStrategy",
    "WaitForAnyStrategy",
    "WaitForError",
    "WaitResult",
    "WaitTimeoutError",
    "format_duration",
    "http_target",
    "parse_duration",
    "parse_target",
    "tcp_target",
    "wait_for_connection",
    "wait_for_single_target",
]
