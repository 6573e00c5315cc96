"""Command-line interface argument parsing for waitup.

This module provides the CLI argument parser that handles:
- Targets (``host:port`` or ``http(s)://`` URLs)
- Timing overrides (timeout, intervals, per-attempt timeout, retry limit)
- ALL/ANY strategy selection
- HTTP expectations (status, headers)
- Security profile, rate limit and presets
- Output mode (quiet, verbose, JSON) and logging
- A command to run after ``--`` once every target is ready
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from waitup.durations import parse_duration
from waitup.errors import InvalidDurationError
from waitup.presets import PRESETS

__all__ = ["parse_args", "parse_header"]

EPILOG = """\
examples:
  waitup db:5432 cache:6379 -- ./start-app
  waitup --any primary:5432 replica:5432
  waitup https://api.internal/health --expect-status 204 --timeout 2m
  waitup --json --header "Authorization:Bearer token" http://svc/ready
"""


def _duration(value: str) -> float:
    try:
        return parse_duration(value)
    except InvalidDurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"{parsed} must be at least 1")
    return parsed


def parse_header(value: str) -> tuple[str, str]:
    """Parse a ``key:value`` header argument.

    Raises:
        argparse.ArgumentTypeError: If the colon is missing or either side is empty.
    """
    name, sep, header_value = value.partition(":")
    name, header_value = name.strip(), header_value.strip()
    if not sep or not name or not header_value:
        raise argparse.ArgumentTypeError(f"Invalid header {value!r}: expected key:value")
    return name, header_value


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="waitup",
        description="Wait for TCP ports and HTTP endpoints to become ready",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "targets",
        nargs="+",
        metavar="TARGET",
        help="host:port or http(s):// URL to wait for",
    )

    timing = parser.add_argument_group("timing")
    timing.add_argument(
        "-t",
        "--timeout",
        type=_duration,
        default=None,
        help="Overall deadline, e.g. 30s, 2m (overrides WAITUP_TIMEOUT)",
    )
    timing.add_argument(
        "-i",
        "--interval",
        type=_duration,
        default=None,
        help="Initial retry interval (overrides WAITUP_INTERVAL)",
    )
    timing.add_argument(
        "--max-interval",
        type=_duration,
        default=None,
        help="Maximum retry interval (overrides WAITUP_MAX_INTERVAL)",
    )
    timing.add_argument(
        "--connection-timeout",
        type=_duration,
        default=None,
        help="Timeout for a single attempt (overrides WAITUP_CONNECTION_TIMEOUT)",
    )
    timing.add_argument(
        "--retry-limit",
        type=_positive_int,
        default=None,
        help="Give up on a target after this many attempts (overrides WAITUP_RETRY_LIMIT)",
    )

    strategy = parser.add_mutually_exclusive_group()
    strategy.add_argument(
        "--any",
        dest="wait_for_any",
        action="store_const",
        const=True,
        default=None,
        help="Succeed when any one target is ready",
    )
    strategy.add_argument(
        "--all",
        dest="wait_for_any",
        action="store_const",
        const=False,
        help="Succeed only when every target is ready (default for several targets)",
    )

    http = parser.add_argument_group("http")
    http.add_argument(
        "--expect-status",
        type=int,
        default=None,
        help="Expected HTTP status for URL targets (overrides WAITUP_EXPECT_STATUS)",
    )
    http.add_argument(
        "--header",
        dest="headers",
        type=parse_header,
        action="append",
        default=[],
        metavar="KEY:VALUE",
        help="Header sent with HTTP requests (repeatable)",
    )

    policy = parser.add_argument_group("policy")
    policy.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        default=None,
        help="Start from a named configuration preset",
    )
    policy.add_argument(
        "--security",
        choices=["none", "default", "development", "production"],
        default=None,
        help="Security profile (overrides WAITUP_SECURITY_PROFILE)",
    )
    policy.add_argument(
        "--rate-limit",
        type=_positive_int,
        default=None,
        help="Attempts per minute per target (overrides WAITUP_RATE_LIMIT)",
    )

    output = parser.add_mutually_exclusive_group()
    output.add_argument("-q", "--quiet", action="store_true", help="Print nothing on stdout")
    output.add_argument(
        "-v", "--verbose", action="store_true", help="Print per-target results and a summary"
    )
    output.add_argument("--json", action="store_true", help="Print the result as JSON")

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides WAITUP_LOG_LEVEL)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    return parser


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Everything after the first ``--`` is the command to run once the targets
    are ready and is returned untouched.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - targets: Target strings
        - timeout, interval, max_interval, connection_timeout: Seconds or None
        - retry_limit: Attempt cap or None
        - wait_for_any: True, False, or None when not given
        - expect_status: Expected HTTP status or None
        - headers: List of (name, value) pairs
        - preset, security, rate_limit: Policy overrides or None
        - quiet, verbose, json: Output mode flags
        - log_level, env_file: Logging level and .env path
        - command: Command argv (possibly empty)
    """
    if args is None:
        args = sys.argv[1:]

    command: list[str] = []
    if "--" in args:
        split = args.index("--")
        args, command = args[:split], args[split + 1 :]

    parsed = _build_parser().parse_args(args)
    parsed.command = command
    return parsed
