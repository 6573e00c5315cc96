"""Ready-made run configurations and target groups.

Each preset returns a fresh ``WaitConfig`` (with its own rate limiter) tuned
for a deployment context:

===================  =======  ========  ============  ===========  ===========  ==========  ==========
Preset               timeout  interval  max interval  per-attempt  max retries  security    rate limit
===================  =======  ========  ============  ===========  ===========  ==========  ==========
local_dev            10s      100ms     1s            2s           50           development 120/min
ci_cd                60s      500ms     5s            10s          30           development 60/min
docker               5m       2s        30s           15s          unlimited    development 60/min
production           2m       1s        30s           30s          20           production  30/min
microservices        90s      500ms     10s           5s           40           development 60/min
external_services    3m       5s        60s           30s          15           production  20/min
===================  =======  ========  ============  ===========  ===========  ==========  ==========
"""

from __future__ import annotations

from collections.abc import Callable

from waitup.rate_limiter import RateLimiter
from waitup.security import SecurityValidator
from waitup.target import Target, http_target, tcp_target
from waitup.types import WaitConfig

__all__ = [
    "PRESETS",
    "ci_cd",
    "database_targets",
    "docker",
    "elasticsearch_targets",
    "external_services",
    "get_preset",
    "local_dev",
    "message_queue_targets",
    "microservices",
    "production",
    "web_service_targets",
]


def local_dev() -> WaitConfig:
    """Short timeouts and fast retries for services on the developer's machine."""
    return WaitConfig(
        timeout=10.0,
        initial_interval=0.1,
        max_interval=1.0,
        connection_timeout=2.0,
        max_retries=50,
        security_validator=SecurityValidator.development(),
        rate_limiter=RateLimiter(max_requests_per_minute=120),
    )


def ci_cd() -> WaitConfig:
    """Moderate timeouts for CI pipelines."""
    return WaitConfig(
        timeout=60.0,
        initial_interval=0.5,
        max_interval=5.0,
        connection_timeout=10.0,
        max_retries=30,
        security_validator=SecurityValidator.development(),
        rate_limiter=RateLimiter(max_requests_per_minute=60),
    )


def docker() -> WaitConfig:
    """Long, unlimited waits for containers that are still starting."""
    return WaitConfig(
        timeout=300.0,
        initial_interval=2.0,
        max_interval=30.0,
        connection_timeout=15.0,
        max_retries=None,
        security_validator=SecurityValidator.development(),
        rate_limiter=RateLimiter(max_requests_per_minute=60),
    )


def production() -> WaitConfig:
    """Conservative checks against public web endpoints."""
    return WaitConfig(
        timeout=120.0,
        initial_interval=1.0,
        max_interval=30.0,
        connection_timeout=30.0,
        max_retries=20,
        security_validator=SecurityValidator.production(),
        rate_limiter=RateLimiter(max_requests_per_minute=30),
    )


def microservices() -> WaitConfig:
    return WaitConfig(
        timeout=90.0,
        initial_interval=0.5,
        max_interval=10.0,
        connection_timeout=5.0,
        max_retries=40,
        security_validator=SecurityValidator.development(),
        rate_limiter=RateLimiter(max_requests_per_minute=60),
    )


def external_services() -> WaitConfig:
    """Patient, low-rate checks against third-party services."""
    return WaitConfig(
        timeout=180.0,
        initial_interval=5.0,
        max_interval=60.0,
        connection_timeout=30.0,
        max_retries=15,
        security_validator=SecurityValidator.production(),
        rate_limiter=RateLimiter(max_requests_per_minute=20),
    )


PRESETS: dict[str, Callable[[], WaitConfig]] = {
    "local_dev": local_dev,
    "ci_cd": ci_cd,
    "docker": docker,
    "production": production,
    "microservices": microservices,
    "external_services": external_services,
}


def get_preset(name: str) -> WaitConfig:
    """Return a fresh config for the named preset.

    Accepts hyphens in place of underscores (``ci-cd``).

    Raises:
        KeyError: If no preset has that name.
    """
    key = name.strip().lower().replace("-", "_")
    if key not in PRESETS:
        raise KeyError(f"Unknown preset {name!r}; choose from {', '.join(sorted(PRESETS))}")
    return PRESETS[key]()


def database_targets() -> list[Target]:
    return [
        tcp_target("postgres", 5432),
        tcp_target("mysql", 3306),
        tcp_target("mongodb", 27017),
        tcp_target("redis", 6379),
    ]


def web_service_targets() -> list[Target]:
    return [
        tcp_target("web", 80),
        tcp_target("api", 8080),
        http_target("http://web/health"),
        http_target("http://api:8080/health"),
    ]


def elasticsearch_targets() -> list[Target]:
    return [
        tcp_target("elasticsearch", 9200),
        tcp_target("kibana", 5601),
        http_target("http://elasticsearch:9200/_cluster/health"),
    ]


def message_queue_targets() -> list[Target]:
    return [
        tcp_target("rabbitmq", 5672),
        tcp_target("kafka", 9092),
        tcp_target("nats", 4222),
    ]
