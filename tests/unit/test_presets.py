"""Tests for preset configurations and target groups."""

from __future__ import annotations

import pytest

from waitup.presets import (
    PRESETS,
    database_targets,
    elasticsearch_targets,
    get_preset,
    local_dev,
    message_queue_targets,
    production,
    web_service_targets,
)
from waitup.security import SecurityValidator
from waitup.target import HttpTarget
from waitup.types import WaitConfig


class TestPresets:
    """Tests for the preset configurations."""

    @pytest.mark.parametrize("name", sorted(PRESETS))
    def test_every_preset_is_valid(self, name: str) -> None:
        """Each preset builds a consistent config with policy attached."""
        config = get_preset(name)
        assert isinstance(config, WaitConfig)
        assert config.initial_interval <= config.max_interval
        assert config.security_validator is not None
        assert config.rate_limiter is not None

    def test_local_dev_values(self) -> None:
        config = local_dev()
        assert config.timeout == 10.0
        assert config.initial_interval == 0.1
        assert config.max_interval == 1.0
        assert config.connection_timeout == 2.0
        assert config.max_retries == 50
        assert config.rate_limiter is not None
        assert config.rate_limiter.max_requests_per_minute == 120

    def test_production_is_strict(self) -> None:
        config = production()
        assert config.security_validator == SecurityValidator.production()
        assert config.max_retries == 20

    def test_docker_is_unlimited(self) -> None:
        assert get_preset("docker").max_retries is None

    def test_hyphenated_names(self) -> None:
        assert get_preset("ci-cd") == get_preset("ci_cd")
        assert get_preset("External-Services").timeout == 180.0

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError, match="staging"):
            get_preset("staging")

    def test_fresh_rate_limiter_per_call(self) -> None:
        """Runs built from the same preset never share attempt budgets."""
        assert local_dev().rate_limiter is not local_dev().rate_limiter


class TestTargetGroups:
    """Tests for the predefined target groups."""

    def test_database_targets(self) -> None:
        assert [t.display() for t in database_targets()] == [
            "postgres:5432",
            "mysql:3306",
            "mongodb:27017",
            "redis:6379",
        ]

    def test_web_service_targets_include_health_urls(self) -> None:
        urls = [t.url for t in web_service_targets() if isinstance(t, HttpTarget)]
        assert urls == ["http://web/health", "http://api:8080/health"]

    def test_other_groups(self) -> None:
        assert len(elasticsearch_targets()) == 3
        assert [t.effective_port for t in message_queue_targets()] == [5672, 9092, 4222]
