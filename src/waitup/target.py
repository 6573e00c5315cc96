"""Probe targets.

A target is an immutable, validated description of one endpoint to wait
for: either a raw TCP ``host:port`` pair or an HTTP(S) URL with the status
code that counts as healthy. Validation happens once, when the target is
built; the probing engine never re-validates.

Usage:
    from waitup.target import parse_target, tcp_target

    db = tcp_target("db.internal", 5432)
    api = parse_target("https://api.internal/health")
    db.display()  # "db.internal:5432"
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TypeAlias
from urllib.parse import urlsplit

from waitup.errors import InvalidHostnameError, InvalidPortError, InvalidTargetError

__all__ = [
    "MAX_HOSTNAME_LENGTH",
    "MAX_LABEL_LENGTH",
    "HttpTarget",
    "Target",
    "TargetKind",
    "TcpTarget",
    "http_target",
    "is_ip_literal",
    "localhost",
    "parse_target",
    "tcp_ports",
    "tcp_target",
    "validate_hostname",
    "validate_port",
]

MAX_HOSTNAME_LENGTH = 253
MAX_LABEL_LENGTH = 63
MIN_PORT = 1
MAX_PORT = 65535
MIN_STATUS = 100
MAX_STATUS = 599

DEFAULT_HTTP_PORTS = {"http": 80, "https": 443}

_HEADER_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
# Visible ASCII plus space and tab.
_HEADER_VALUE_RE = re.compile(r"^[\x20-\x7e\t]+$")


class TargetKind(StrEnum):
    """Kind of endpoint a target describes."""

    TCP = "tcp"
    HTTP = "http"


def is_ip_literal(host: str) -> bool:
    """Return True if ``host`` is an IPv4 or IPv6 address literal."""
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def validate_hostname(hostname: str) -> str:
    """Validate a DNS hostname or IP literal.

    Hostnames follow RFC 1035 loosely: at most 253 characters, dot-separated
    labels of 1-63 ASCII letters, digits or hyphens, and no label (nor the
    name as a whole) may start or end with a hyphen.

    Args:
        hostname: The hostname to check.

    Returns:
        The hostname, unchanged.

    Raises:
        InvalidHostnameError: If the hostname is not acceptable.
    """
    if not hostname:
        raise InvalidHostnameError(hostname, "hostname cannot be empty")
    if is_ip_literal(hostname):
        return hostname
    if len(hostname) > MAX_HOSTNAME_LENGTH:
        raise InvalidHostnameError(
            hostname, f"hostname exceeds {MAX_HOSTNAME_LENGTH} characters"
        )
    if hostname.startswith("-") or hostname.endswith("-"):
        raise InvalidHostnameError(hostname, "hostname cannot start or end with a hyphen")

    for label in hostname.split("."):
        if not label:
            raise InvalidHostnameError(hostname, "hostname contains an empty label")
        if len(label) > MAX_LABEL_LENGTH:
            raise InvalidHostnameError(
                hostname, f"label {label!r} exceeds {MAX_LABEL_LENGTH} characters"
            )
        if label.startswith("-") or label.endswith("-"):
            raise InvalidHostnameError(
                hostname, f"label {label!r} cannot start or end with a hyphen"
            )
        if not all(c.isascii() and (c.isalnum() or c == "-") for c in label):
            raise InvalidHostnameError(
                hostname, f"label {label!r} contains characters other than letters, digits and hyphens"
            )
    return hostname


def validate_port(port: int) -> int:
    """Validate a TCP port number.

    Raises:
        InvalidPortError: If ``port`` is not an int in 1-65535.
    """
    # bool is a subclass of int
    if isinstance(port, bool) or not isinstance(port, int):
        raise InvalidPortError(port)
    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortError(port)
    return port


@dataclass(frozen=True)
class TcpTarget:
    """A raw TCP endpoint.

    Attributes:
        host: Hostname or IP literal.
        port: Port number, 1-65535.
    """

    host: str
    port: int

    def __post_init__(self) -> None:
        validate_hostname(self.host)
        validate_port(self.port)

    @property
    def kind(self) -> TargetKind:
        return TargetKind.TCP

    @property
    def hostname(self) -> str:
        return self.host

    @property
    def effective_port(self) -> int:
        return self.port

    def display(self) -> str:
        """Return ``host:port``, bracketing IPv6 literals."""
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def rate_limit_key(self) -> str:
        return f"tcp://{self.host}:{self.port}"

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class HttpTarget:
    """An HTTP(S) endpoint checked with a single GET.

    Attributes:
        url: Absolute http or https URL.
        expected_status: Status code that counts as healthy (100-599).
        headers: Extra request headers as ordered (name, value) pairs.
    """

    url: str
    expected_status: int = 200
    headers: tuple[tuple[str, str], ...] = field(default=())

    def __post_init__(self) -> None:
        parts = urlsplit(self.url)
        if parts.scheme not in DEFAULT_HTTP_PORTS:
            raise InvalidTargetError(
                f"Invalid URL {self.url!r}: scheme must be http or https"
            )
        if not parts.hostname:
            raise InvalidTargetError(f"Invalid URL {self.url!r}: missing host")
        validate_hostname(parts.hostname)
        try:
            explicit_port = parts.port
        except ValueError as e:
            raise InvalidTargetError(f"Invalid URL {self.url!r}: {e}") from e
        if explicit_port is not None:
            validate_port(explicit_port)

        status = self.expected_status
        if isinstance(status, bool) or not isinstance(status, int) or not (
            MIN_STATUS <= status <= MAX_STATUS
        ):
            raise InvalidTargetError(
                f"Invalid HTTP status {status!r}: must be between {MIN_STATUS} and {MAX_STATUS}"
            )

        headers = tuple((str(name), str(value)) for name, value in self.headers)
        for name, value in headers:
            if not name or not value:
                raise InvalidTargetError("HTTP header names and values cannot be empty")
            if not _HEADER_NAME_RE.match(name):
                raise InvalidTargetError(
                    f"Invalid HTTP header name {name!r}: only letters, digits, '-' and '_' are allowed"
                )
            if not _HEADER_VALUE_RE.match(value):
                raise InvalidTargetError(
                    f"Invalid value for HTTP header {name!r}: only printable ASCII is allowed"
                )
        object.__setattr__(self, "headers", headers)

    @property
    def kind(self) -> TargetKind:
        return TargetKind.HTTP

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme

    @property
    def hostname(self) -> str:
        # Validated non-empty in __post_init__.
        return urlsplit(self.url).hostname or ""

    @property
    def port(self) -> int | None:
        """The port written in the URL, or None when the scheme default applies."""
        return urlsplit(self.url).port

    @property
    def effective_port(self) -> int:
        return self.port or DEFAULT_HTTP_PORTS[self.scheme]

    def display(self) -> str:
        return self.url

    def rate_limit_key(self) -> str:
        return f"http://{self.hostname}:{self.effective_port}"

    def __str__(self) -> str:
        return self.display()


Target: TypeAlias = TcpTarget | HttpTarget

HeaderInput: TypeAlias = Mapping[str, str] | Iterable[tuple[str, str]] | None


def _normalize_headers(headers: HeaderInput) -> tuple[tuple[str, str], ...]:
    if headers is None:
        return ()
    if isinstance(headers, Mapping):
        return tuple(headers.items())
    return tuple(headers)


def tcp_target(host: str, port: int) -> TcpTarget:
    """Build a TCP target."""
    return TcpTarget(host=host, port=port)


def http_target(url: str, expected_status: int = 200, headers: HeaderInput = None) -> HttpTarget:
    """Build an HTTP target.

    Args:
        url: Absolute http or https URL.
        expected_status: Status that counts as healthy.
        headers: Mapping or (name, value) pairs sent with every request.

    Returns:
        The validated target.
    """
    return HttpTarget(url=url, expected_status=expected_status, headers=_normalize_headers(headers))


def localhost(port: int) -> TcpTarget:
    return TcpTarget(host="localhost", port=port)


def tcp_ports(host: str, ports: Sequence[int]) -> list[TcpTarget]:
    """Build one TCP target per port on the same host."""
    return [TcpTarget(host=host, port=port) for port in ports]


def parse_target(text: str, default_status: int = 200, headers: HeaderInput = None) -> Target:
    """Parse a target from its command-line form.

    Accepts ``host:port``, ``[ipv6]:port`` and ``http(s)://...`` URLs.
    ``default_status`` and ``headers`` only apply to URL targets.

    Args:
        text: The target string.
        default_status: Expected status for URL targets.
        headers: Headers for URL targets.

    Returns:
        The validated target.

    Raises:
        InvalidTargetError: If the string is not a valid target.
    """
    text = text.strip()
    if text.startswith(("http://", "https://")):
        return http_target(text, default_status, headers)
    if "://" in text:
        raise InvalidTargetError(
            f"Invalid target {text!r}: only http:// and https:// URLs are supported"
        )

    if text.startswith("["):
        host, sep, port_text = text[1:].partition("]:")
        if not sep:
            raise InvalidTargetError(f"Invalid target {text!r}: expected [address]:port")
    else:
        host, sep, port_text = text.rpartition(":")
        if not sep:
            raise InvalidTargetError(f"Invalid target {text!r}: expected host:port")
        if ":" in host:
            raise InvalidTargetError(
                f"Invalid target {text!r}: IPv6 addresses must be written as [address]:port"
            )

    if not port_text.isdigit():
        raise InvalidTargetError(f"Invalid target {text!r}: port must be a number")
    return TcpTarget(host=host, port=int(port_text))
