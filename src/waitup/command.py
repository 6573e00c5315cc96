"""Execution of the command that runs once every target is ready."""

from __future__ import annotations

import shlex
import subprocess
from collections.abc import Sequence

from waitup.errors import CommandExecutionError
from waitup.logging import get_logger

logger = get_logger(__name__)

__all__ = ["execute_command"]


def execute_command(argv: Sequence[str]) -> int:
    """Run ``argv`` in the foreground, inheriting stdio.

    Args:
        argv: Program and arguments. No shell is involved.

    Returns:
        The command's exit code, always 0.

    Raises:
        CommandExecutionError: If the command is empty, cannot be started,
            or exits with a non-zero status.
    """
    if not argv:
        raise CommandExecutionError("", "no command given")

    display = shlex.join(argv)
    logger.info("Running command: %s", display)
    try:
        completed = subprocess.run(list(argv), check=False)
    except OSError as e:
        raise CommandExecutionError(display, f"could not start: {e}") from e

    if completed.returncode != 0:
        raise CommandExecutionError(
            display,
            f"exited with status {completed.returncode}",
            returncode=completed.returncode,
        )
    return completed.returncode
