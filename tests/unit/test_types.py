"""Tests for run configuration and result types."""

from __future__ import annotations

import pytest

from waitup.cancellation import CancellationToken
from waitup.errors import ConfigurationError
from waitup.rate_limiter import RateLimiter
from waitup.target import tcp_target
from waitup.types import ProbeState, ResultSummary, TargetResult, WaitConfig, WaitResult

DB = tcp_target("db", 5432)
CACHE = tcp_target("cache", 6379)


class TestWaitConfig:
    """Tests for WaitConfig validation."""

    def test_defaults(self) -> None:
        config = WaitConfig()
        assert config.timeout == 30.0
        assert config.initial_interval == 1.0
        assert config.max_interval == 30.0
        assert config.connection_timeout == 10.0
        assert config.max_retries is None
        assert config.wait_for_any is False
        assert config.cancellation_token is None
        assert config.security_validator is None
        assert config.rate_limiter is None

    @pytest.mark.parametrize(
        "changes",
        [
            {"timeout": -1.0},
            {"connection_timeout": -0.5},
            {"initial_interval": 5.0, "max_interval": 1.0},
            {"max_retries": 0},
            {"max_retries": True},
            {"timeout": "30s"},
            {"timeout": True},
            {"timeout": float("nan")},
            {"timeout": float("inf")},
            {"initial_interval": float("nan")},
            {"max_interval": float("inf")},
            {"connection_timeout": float("nan")},
        ],
    )
    def test_rejects_invalid(self, changes: dict[str, object]) -> None:
        """Test that inconsistent settings are rejected at construction."""
        with pytest.raises(ConfigurationError):
            WaitConfig(**changes)  # type: ignore[arg-type]

    def test_nan_timeout_message(self) -> None:
        """Test that a NaN duration is reported as not finite."""
        with pytest.raises(ConfigurationError, match="finite"):
            WaitConfig(timeout=float("nan"))

    def test_replace_revalidates(self) -> None:
        with pytest.raises(ConfigurationError):
            WaitConfig().replace(max_interval=0.1)

    def test_equality_ignores_runtime_handles(self) -> None:
        """Token and limiter identity does not affect equality."""
        first = WaitConfig(cancellation_token=CancellationToken(), rate_limiter=RateLimiter())
        second = WaitConfig(cancellation_token=CancellationToken(), rate_limiter=RateLimiter())
        assert first == second


class TestProbeState:
    """Tests for ProbeState."""

    def test_terminal_states(self) -> None:
        assert not ProbeState.PROBING.is_terminal
        for state in ProbeState:
            if state is not ProbeState.PROBING:
                assert state.is_terminal

    def test_values_are_strings(self) -> None:
        assert ProbeState.TIMED_OUT == "timed_out"


class TestResults:
    """Tests for TargetResult, WaitResult and ResultSummary."""

    def _result(self) -> WaitResult:
        return WaitResult(
            success=False,
            elapsed=2.5,
            attempts=5,
            target_results=(
                TargetResult(DB, True, 0.75, 2),
                TargetResult(
                    CACHE,
                    False,
                    2.5,
                    3,
                    error="Overall timeout exceeded",
                    state=ProbeState.TIMED_OUT,
                ),
            ),
        )

    def test_target_result_to_dict(self) -> None:
        assert TargetResult(DB, True, 0.1234, 1).to_dict() == {
            "target": "db:5432",
            "success": True,
            "elapsed_ms": 123,
            "attempts": 1,
            "error": None,
        }

    def test_wait_result_to_dict(self) -> None:
        data = self._result().to_dict()
        assert data["success"] is False
        assert data["elapsed_ms"] == 2500
        assert data["total_attempts"] == 5
        assert [t["target"] for t in data["targets"]] == ["db:5432", "cache:6379"]
        assert data["targets"][1]["error"] == "Overall timeout exceeded"

    def test_partitions(self) -> None:
        result = self._result()
        assert [r.target for r in result.successful_results()] == [DB]
        assert [r.target for r in result.failed_results()] == [CACHE]

    def test_summary(self) -> None:
        summary = self._result().summary()
        assert summary == ResultSummary(
            total_targets=2,
            successful_count=1,
            failed_count=1,
            total_attempts=5,
            total_elapsed=2.5,
            fastest=0.75,
            slowest=0.75,
        )
        assert summary.success_rate == 50.0
        assert str(summary) == "Targets: 1/2 successful, 5 attempts, elapsed: 2500ms"

    def test_empty_summary(self) -> None:
        summary = WaitResult(success=True, elapsed=0.0, attempts=0).summary()
        assert summary.success_rate == 100.0
        assert summary.fastest is None
        assert str(summary) == "Targets: 0/0 successful, 0 attempts, elapsed: 0s"
