"""Tests for duration parsing and formatting."""

from __future__ import annotations

import pytest

from waitup.durations import format_duration, parse_duration
from waitup.errors import InvalidDurationError


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("30", 30.0),
            ("0", 0.0),
            ("1.5", 1.5),
            ("30s", 30.0),
            ("250ms", 0.25),
            ("5m", 300.0),
            ("2h", 7200.0),
            ("1h30m", 5400.0),
            ("1m30s", 90.0),
            (" 10S ", 10.0),
        ],
    )
    def test_valid(self, text: str, expected: float) -> None:
        """Test accepted forms."""
        assert parse_duration(text) == expected

    def test_truncates_to_whole_milliseconds(self) -> None:
        """Test that sub-millisecond precision is dropped."""
        assert parse_duration("1.0009s") == 1.0
        assert parse_duration("1.005s") == 1.005

    @pytest.mark.parametrize("text", ["", "   ", "-5s", "abc", "10x", "s", "10s5", "5 s"])
    def test_invalid(self, text: str) -> None:
        """Test that malformed durations are rejected."""
        with pytest.raises(InvalidDurationError):
            parse_duration(text)

    def test_negative_reason(self) -> None:
        """Test that negative durations say why they failed."""
        with pytest.raises(InvalidDurationError, match="negative"):
            parse_duration("-1")

    @pytest.mark.parametrize("text", ["9" * 400, "9" * 400 + "h"])
    def test_overflowing_number(self, text: str) -> None:
        """Test that numbers too large for a float are rejected, not crashed on."""
        with pytest.raises(InvalidDurationError, match="too large"):
            parse_duration(text)

    def test_error_is_value_error(self) -> None:
        """Test that argparse-style callers can catch ValueError."""
        with pytest.raises(ValueError):
            parse_duration("nope")


class TestFormatDuration:
    """Tests for format_duration."""

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (7200, "2h"),
            (300, "5m"),
            (90, "90s"),
            (1, "1s"),
            (1.5, "1500ms"),
            (0.25, "250ms"),
            (0, "0s"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        """Test that the largest whole unit is used."""
        assert format_duration(seconds) == expected

    def test_parse_accepts_formatted_output(self) -> None:
        """Test that formatted durations parse back to the same value."""
        for seconds in (5400.0, 0.75, 42.0):
            assert parse_duration(format_duration(seconds)) == seconds
