"""Rendering of run results for the command-line tool."""

from __future__ import annotations

import json

from waitup.durations import format_duration
from waitup.types import WaitResult

__all__ = [
    "EXIT_CANCELLED",
    "EXIT_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_USAGE",
    "exit_code_for",
    "render_json",
    "render_text",
]

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


def exit_code_for(success: bool) -> int:
    return EXIT_SUCCESS if success else EXIT_FAILURE


def render_json(result: WaitResult) -> str:
    """Render a result as a single JSON document.

    Shape::

        {"success": true, "elapsed_ms": 1204, "total_attempts": 3,
         "targets": [{"target": "db:5432", "success": true,
                      "elapsed_ms": 1203, "attempts": 3, "error": null}]}
    """
    return json.dumps(result.to_dict(), indent=2)


def render_text(result: WaitResult, verbose: bool = False) -> str:
    """Render a result as human-readable lines.

    Args:
        result: The run's aggregate result.
        verbose: Add one line per target and the run summary.

    Returns:
        Text without a trailing newline.
    """
    if result.success:
        if not result.target_results:
            lines = ["No targets to wait for"]
        else:
            names = ", ".join(r.target.display() for r in result.target_results)
            lines = [f"{names} ready after {format_duration(result.elapsed)}"]
    else:
        failed = ", ".join(r.target.display() for r in result.failed_results())
        lines = [f"Timed out waiting for {failed}"]

    if verbose:
        for r in result.target_results:
            status = "ready" if r.success else f"failed: {r.error}"
            lines.append(
                f"  {r.target.display()}: {status} "
                f"({r.attempts} attempt(s), {format_duration(r.elapsed)})"
            )
        lines.append(str(result.summary()))
    return "\n".join(lines)
