"""Tests for retry interval strategies."""

from __future__ import annotations

import pytest

from waitup.backoff import (
    ExponentialBackoffStrategy,
    LinearBackoffStrategy,
    RetryStrategy,
    next_interval,
)


class TestNextInterval:
    """Tests for the next_interval function."""

    def test_grows_by_one_and_a_half(self) -> None:
        """Test the default multiplier."""
        assert next_interval(1.0, 30.0) == 1.5
        assert next_interval(1.5, 30.0) == 2.25
        assert next_interval(2.25, 30.0) == 3.375

    def test_truncates_to_milliseconds(self) -> None:
        """Test that fractional milliseconds are dropped."""
        assert next_interval(3.375, 30.0) == 5.062

    def test_caps_at_maximum(self) -> None:
        """Test that the interval never exceeds the cap."""
        assert next_interval(25.0, 30.0) == 30.0
        assert next_interval(30.0, 30.0) == 30.0

    def test_zero_stays_zero(self) -> None:
        """Test that a zero interval does not grow."""
        assert next_interval(0.0, 30.0) == 0.0

    def test_sequence_is_monotonic_until_cap(self) -> None:
        """Test that repeated application never decreases."""
        interval = 0.1
        seen = [interval]
        for _ in range(20):
            interval = next_interval(interval, 10.0)
            seen.append(interval)
        assert seen == sorted(seen)
        assert seen[-1] == 10.0


class TestExponentialBackoffStrategy:
    """Tests for ExponentialBackoffStrategy."""

    def test_satisfies_protocol(self) -> None:
        """Test runtime protocol conformance."""
        assert isinstance(ExponentialBackoffStrategy(), RetryStrategy)

    def test_uses_own_cap(self) -> None:
        """Test that max_interval bounds the result."""
        strategy = ExponentialBackoffStrategy(max_interval=2.0)
        assert strategy.next_interval(1.0) == 1.5
        assert strategy.next_interval(1.5) == 2.0

    def test_custom_multiplier(self) -> None:
        """Test a non-default multiplier."""
        assert ExponentialBackoffStrategy(multiplier=2.0).next_interval(1.0) == 2.0

    def test_rejects_shrinking_multiplier(self) -> None:
        """Test that a multiplier below 1 is rejected."""
        with pytest.raises(ValueError, match="multiplier"):
            ExponentialBackoffStrategy(multiplier=0.5)

    @pytest.mark.parametrize(
        ("attempt", "max_retries", "expected"),
        [(1, None, True), (1000, None, True), (2, 3, True), (3, 3, False), (4, 3, False)],
    )
    def test_should_retry(self, attempt: int, max_retries: int | None, expected: bool) -> None:
        """Test the retry budget."""
        assert ExponentialBackoffStrategy().should_retry(attempt, max_retries) is expected


class TestLinearBackoffStrategy:
    """Tests for LinearBackoffStrategy."""

    def test_adds_increment(self) -> None:
        """Test linear growth and cap."""
        strategy = LinearBackoffStrategy(increment=0.5, max_interval=2.0)
        assert strategy.next_interval(1.0) == 1.5
        assert strategy.next_interval(1.8) == 2.0

    def test_rejects_negative_increment(self) -> None:
        """Test that a negative increment is rejected."""
        with pytest.raises(ValueError):
            LinearBackoffStrategy(increment=-1.0)

    def test_satisfies_protocol(self) -> None:
        """Test runtime protocol conformance."""
        assert isinstance(LinearBackoffStrategy(), RetryStrategy)
