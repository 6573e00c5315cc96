"""Target security policy.

``SecurityValidator`` rejects targets that point at hosts or ports a caller
should not be probing: blocked ports, ports outside an allow list, private or
loopback addresses and localhost, and overlong or non-http(s) URLs. The
validator is an immutable value and safe to share between concurrent probers.

Two presets cover the common cases:

- ``SecurityValidator.production()``: deny private addresses and localhost,
  allow only web ports (80, 443, 8080, 8443).
- ``SecurityValidator.development()``: permissive, block only a short list of
  sensitive service ports.

Usage:
    validator = SecurityValidator.production()
    validator.validate_target(target)  # raises SecurityViolationError
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from urllib.parse import urlsplit

from waitup.errors import SecurityViolationError
from waitup.target import HttpTarget, Target, TcpTarget

__all__ = [
    "DEFAULT_BLOCKED_PORTS",
    "DEVELOPMENT_BLOCKED_PORTS",
    "PRODUCTION_ALLOWED_PORTS",
    "PRODUCTION_BLOCKED_PORTS",
    "SecurityValidator",
    "is_private_ip",
]

# SSH, Telnet, RPC, SMB, MSSQL, RDP, PostgreSQL, Redis
DEFAULT_BLOCKED_PORTS: frozenset[int] = frozenset({22, 23, 135, 445, 1433, 3389, 5432, 6379})

PRODUCTION_ALLOWED_PORTS: frozenset[int] = frozenset({80, 443, 8080, 8443})

PRODUCTION_BLOCKED_PORTS: frozenset[int] = frozenset(
    {22, 23, 25, 53, 135, 139, 445, 993, 995, 1433, 1521, 3306, 3389, 5432, 6379}
)

DEVELOPMENT_BLOCKED_PORTS: frozenset[int] = frozenset({22, 23, 135, 445, 3389})

LOCALHOST_NAMES: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1"})

_PRIVATE_V4_NETWORKS = (
    ipaddress.IPv4Network("10.0.0.0/8"),
    ipaddress.IPv4Network("172.16.0.0/12"),
    ipaddress.IPv4Network("192.168.0.0/16"),
    ipaddress.IPv4Network("127.0.0.0/8"),
)


def is_private_ip(host: str) -> bool:
    """Return True if ``host`` is a private, loopback or unspecified IP literal.

    Hostnames (non-literals) are never considered private; no DNS lookup is
    performed.
    """
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    if isinstance(address, ipaddress.IPv4Address):
        return any(address in network for network in _PRIVATE_V4_NETWORKS)
    return address.is_loopback or address.is_unspecified


@dataclass(frozen=True)
class SecurityValidator:
    """Host and port policy applied before each connection attempt.

    Attributes:
        allow_private_ips: Permit RFC 1918 and loopback IP literals.
        allow_localhost: Permit ``localhost``, ``127.0.0.1`` and ``::1``.
        allowed_ports: If set, only these ports may be probed.
        blocked_ports: Ports that may never be probed.
        max_hostname_length: Longest hostname accepted.
        max_url_length: Longest HTTP URL accepted.
    """

    allow_private_ips: bool = True
    allow_localhost: bool = True
    allowed_ports: frozenset[int] | None = None
    blocked_ports: frozenset[int] = DEFAULT_BLOCKED_PORTS
    max_hostname_length: int = 253
    max_url_length: int = 2048

    @classmethod
    def production(cls) -> SecurityValidator:
        """Strict policy for probing public web endpoints."""
        return cls(
            allow_private_ips=False,
            allow_localhost=False,
            allowed_ports=PRODUCTION_ALLOWED_PORTS,
            blocked_ports=PRODUCTION_BLOCKED_PORTS,
            max_hostname_length=100,
            max_url_length=1024,
        )

    @classmethod
    def development(cls) -> SecurityValidator:
        """Permissive policy that only blocks remote-administration ports."""
        return cls(
            allow_private_ips=True,
            allow_localhost=True,
            allowed_ports=None,
            blocked_ports=DEVELOPMENT_BLOCKED_PORTS,
            max_hostname_length=253,
            max_url_length=2048,
        )

    @classmethod
    def for_profile(cls, profile: str) -> SecurityValidator | None:
        """Return the validator for a named profile.

        Args:
            profile: ``none``, ``default``, ``development`` or ``production``.

        Returns:
            The validator, or None for ``none``.

        Raises:
            ValueError: If the profile is unknown.
        """
        name = profile.strip().lower()
        if name == "none":
            return None
        if name == "default":
            return cls()
        if name == "development":
            return cls.development()
        if name == "production":
            return cls.production()
        raise ValueError(f"Unknown security profile {profile!r}")

    def validate_target(self, target: Target) -> None:
        """Check a target against this policy.

        Args:
            target: The target about to be probed.

        Raises:
            SecurityViolationError: If the target violates the policy.
        """
        if isinstance(target, TcpTarget):
            self.validate_hostname(target.host)
            self.validate_port(target.port)
        elif isinstance(target, HttpTarget):
            self.validate_url(target.url)
        else:
            raise SecurityViolationError(f"Unsupported target type: {type(target).__name__}")

    def validate_url(self, url: str) -> None:
        """Check an HTTP URL: length, scheme, host, then any explicit port."""
        if len(url) > self.max_url_length:
            raise SecurityViolationError(
                f"URL exceeds maximum length of {self.max_url_length} characters"
            )
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            raise SecurityViolationError(f"URL scheme {parts.scheme!r} is not allowed")
        if parts.hostname:
            self.validate_hostname(parts.hostname)
        try:
            port = parts.port
        except ValueError as e:
            raise SecurityViolationError(f"URL has an invalid port: {e}") from e
        if port is not None:
            self.validate_port(port)

    def validate_hostname(self, hostname: str) -> None:
        if len(hostname) > self.max_hostname_length:
            raise SecurityViolationError(
                f"Hostname exceeds maximum length of {self.max_hostname_length} characters"
            )
        if not self.allow_localhost and hostname.lower() in LOCALHOST_NAMES:
            raise SecurityViolationError(f"Localhost connections are not allowed: {hostname}")
        if not self.allow_private_ips and is_private_ip(hostname):
            raise SecurityViolationError(f"Private IP addresses are not allowed: {hostname}")

    def validate_port(self, port: int) -> None:
        if port in self.blocked_ports:
            raise SecurityViolationError(f"Port {port} is blocked by security policy")
        if self.allowed_ports is not None and port not in self.allowed_ports:
            raise SecurityViolationError(f"Port {port} is not in the allowed ports list")
