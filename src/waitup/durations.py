"""Human-friendly duration strings.

Durations are plain ``float`` seconds everywhere in waitup. This module turns
strings such as ``"30s"``, ``"500ms"``, ``"5m"``, ``"2h"`` or ``"1h30m"`` into
seconds and back. A bare number means seconds.
"""

from __future__ import annotations

import math
import re

from waitup.errors import InvalidDurationError

__all__ = ["UNIT_SECONDS", "format_duration", "parse_duration"]

UNIT_SECONDS: dict[str, float] = {
    "ms": 0.001,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT_RE = re.compile(r"(\d+(?:\.\d+)?|\.\d+)(ms|s|m|h)")
_BARE_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?|\.\d+")


def _truncate_ms(seconds: float) -> float:
    # The epsilon absorbs float error such as 1.005 * 1000 == 1004.999...
    return math.floor(seconds * 1000 + 1e-6) / 1000


def _finite(value: str, seconds: float) -> float:
    if not math.isfinite(seconds * 1000):
        raise InvalidDurationError(value, "duration is too large")
    return _truncate_ms(seconds)


def parse_duration(value: str) -> float:
    """Parse a duration string into seconds.

    The result is truncated to whole milliseconds, so parsing the same string
    twice always gives the same float.

    Args:
        value: Duration such as ``"30"``, ``"1.5s"``, ``"250ms"`` or ``"1h30m"``.

    Returns:
        Duration in seconds.

    Raises:
        InvalidDurationError: If the string is empty, negative or malformed.
    """
    text = value.strip().lower()
    if not text:
        raise InvalidDurationError(value, "empty duration")
    if text.startswith("-"):
        raise InvalidDurationError(value, "duration cannot be negative")

    if _BARE_NUMBER_RE.fullmatch(text):
        return _finite(value, float(text))

    total = 0.0
    position = 0
    for match in _COMPONENT_RE.finditer(text):
        if match.start() != position:
            break
        number, unit = match.groups()
        total += float(number) * UNIT_SECONDS[unit]
        position = match.end()

    if position != len(text) or position == 0:
        raise InvalidDurationError(value, "expected a number with an optional ms, s, m or h unit")
    return _finite(value, total)


def format_duration(seconds: float) -> str:
    """Render seconds with the largest unit that divides them evenly.

    >>> format_duration(7200)
    '2h'
    >>> format_duration(1.5)
    '1500ms'
    """
    millis = round(seconds * 1000)
    if millis == 0:
        return "0s"
    for unit, factor in (("h", 3_600_000), ("m", 60_000), ("s", 1000)):
        if millis % factor == 0:
            return f"{millis // factor}{unit}"
    return f"{millis}ms"
