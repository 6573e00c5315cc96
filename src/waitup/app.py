"""Core application runner for waitup.

This module provides the command-line entry point that coordinates:
- Argument parsing and environment configuration
- Target and run-policy construction
- The probe run itself, with SIGINT/SIGTERM mapped to cancellation
- Result rendering and exit codes
- Running the follow-up command once every target is ready

Exit codes:
    0   every target (or, with ``--any``, one target) is ready
    1   the run timed out, or the follow-up command failed
    2   invalid targets or configuration
    130 the run was cancelled by a signal
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence
from typing import Any

from waitup.cancellation import CancellationToken
from waitup.command import execute_command
from waitup.cli import parse_args
from waitup.config import Config, load_config
from waitup.errors import (
    CommandExecutionError,
    ConfigurationError,
    InvalidTargetError,
    WaitCancelledError,
    WaitTimeoutError,
)
from waitup.logging import get_logger, setup_logging
from waitup.orchestrator import wait_for_connection
from waitup.output import (
    EXIT_CANCELLED,
    EXIT_FAILURE,
    EXIT_USAGE,
    exit_code_for,
    render_json,
    render_text,
)
from waitup.presets import get_preset
from waitup.rate_limiter import RateLimiter
from waitup.security import SecurityValidator
from waitup.shutdown import create_shutdown_handler
from waitup.target import Target, parse_target
from waitup.types import WaitConfig, WaitResult

logger = get_logger(__name__)


def build_targets(parsed: argparse.Namespace, config: Config) -> list[Target]:
    """Parse the target arguments.

    Raises:
        InvalidTargetError: If any target is malformed.
    """
    status = parsed.expect_status if parsed.expect_status is not None else config.expect_status
    return [parse_target(text, status, parsed.headers) for text in parsed.targets]


def build_wait_config(
    parsed: argparse.Namespace,
    config: Config,
    token: CancellationToken | None = None,
) -> WaitConfig:
    """Combine preset, environment and flags into the run policy.

    A ``--preset`` replaces the environment's timing and policy settings;
    explicit flags override either. A single target waits with the ANY
    strategy unless ``--all`` is given.

    Raises:
        ConfigurationError: If the resulting policy is inconsistent.
    """
    wait_for_any = parsed.wait_for_any
    if wait_for_any is None:
        wait_for_any = len(parsed.targets) == 1

    if parsed.preset:
        base = get_preset(parsed.preset)
    else:
        base = config.to_wait_config()

    overrides: dict[str, Any] = {
        "wait_for_any": wait_for_any,
        "cancellation_token": token,
    }
    if parsed.timeout is not None:
        overrides["timeout"] = parsed.timeout
    if parsed.interval is not None:
        overrides["initial_interval"] = parsed.interval
        if parsed.max_interval is None:
            overrides["max_interval"] = max(base.max_interval, parsed.interval)
    if parsed.max_interval is not None:
        overrides["max_interval"] = parsed.max_interval
    if parsed.connection_timeout is not None:
        overrides["connection_timeout"] = parsed.connection_timeout
    if parsed.retry_limit is not None:
        overrides["max_retries"] = parsed.retry_limit
    if parsed.security is not None:
        overrides["security_validator"] = SecurityValidator.for_profile(parsed.security)
    if parsed.rate_limit is not None:
        overrides["rate_limiter"] = RateLimiter(max_requests_per_minute=parsed.rate_limit)

    return base.replace(**overrides)


async def run_wait(targets: Sequence[Target], wait_config: WaitConfig) -> WaitResult:
    """Run the probes with signal handlers cancelling the run's token."""
    handler = create_shutdown_handler(wait_config.cancellation_token)
    if wait_config.cancellation_token is None:
        wait_config = wait_config.replace(cancellation_token=handler.token)

    handler.install_signal_handlers(asyncio.get_running_loop())
    try:
        return await wait_for_connection(targets, wait_config)
    finally:
        handler.remove_signal_handlers()


def report(result: WaitResult, parsed: argparse.Namespace) -> None:
    """Print ``result`` to stdout in the requested output mode."""
    if parsed.json:
        print(render_json(result))
    elif not parsed.quiet:
        print(render_text(result, verbose=parsed.verbose))


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    This is the primary entry point that:
    1. Parses command-line arguments and loads configuration
    2. Builds targets and the run policy
    3. Waits for the targets
    4. Reports the result and runs the follow-up command

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application.
    """
    parsed = parse_args(args)
    config = load_config(parsed.env_file)
    setup_logging(parsed.log_level or config.log_level, json_format=config.log_json)

    try:
        targets = build_targets(parsed, config)
        wait_config = build_wait_config(parsed, config)
    except (InvalidTargetError, ConfigurationError) as e:
        print(f"waitup: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        result = asyncio.run(run_wait(targets, wait_config))
    except WaitCancelledError:
        if not parsed.quiet:
            print("waitup: cancelled", file=sys.stderr)
        return EXIT_CANCELLED
    except WaitTimeoutError as e:
        if e.result is None:
            print(f"waitup: {e}", file=sys.stderr)
            return EXIT_FAILURE
        result = e.result

    report(result, parsed)
    if not result.success:
        return exit_code_for(False)

    if parsed.command:
        try:
            execute_command(parsed.command)
        except CommandExecutionError as e:
            print(f"waitup: {e}", file=sys.stderr)
            return EXIT_FAILURE
    return exit_code_for(True)


__all__ = [
    "build_targets",
    "build_wait_config",
    "main",
    "report",
    "run_wait",
]
