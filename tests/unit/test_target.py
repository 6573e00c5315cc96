"""Tests for target construction and validation."""

from __future__ import annotations

import pytest

from waitup.errors import InvalidHostnameError, InvalidPortError, InvalidTargetError
from waitup.target import (
    HttpTarget,
    TargetKind,
    TcpTarget,
    http_target,
    localhost,
    parse_target,
    tcp_ports,
    tcp_target,
    validate_hostname,
)


class TestValidateHostname:
    """Tests for validate_hostname."""

    @pytest.mark.parametrize(
        "hostname",
        ["", "-example.com", "example.com-", "a..b", "exa_mple.com", "bad-.example.com"],
    )
    def test_rejects_invalid_names(self, hostname: str) -> None:
        """Test that malformed hostnames are rejected."""
        with pytest.raises(InvalidHostnameError):
            validate_hostname(hostname)

    def test_rejects_254_character_name(self) -> None:
        """Test that names over 253 characters are rejected."""
        name = ("a" * 63 + ".") * 3 + "a" * 62
        assert len(name) == 254
        with pytest.raises(InvalidHostnameError, match="253"):
            validate_hostname(name)

    def test_accepts_253_character_name(self) -> None:
        """Test that a 253-character name of valid labels is accepted."""
        name = ("a" * 63 + ".") * 3 + "a" * 61
        assert len(name) == 253
        assert validate_hostname(name) == name

    def test_rejects_long_label(self) -> None:
        """Test that labels over 63 characters are rejected."""
        with pytest.raises(InvalidHostnameError, match="63"):
            validate_hostname("a" * 64 + ".com")

    @pytest.mark.parametrize(
        "hostname", ["localhost", "db", "my-service.internal", "10.0.0.1", "::1", "fe80::1"]
    )
    def test_accepts_valid_names_and_ip_literals(self, hostname: str) -> None:
        """Test that ordinary names and IP literals pass."""
        assert validate_hostname(hostname) == hostname


class TestTcpTarget:
    """Tests for TcpTarget."""

    def test_display(self) -> None:
        """Test host:port display form."""
        assert tcp_target("db", 5432).display() == "db:5432"
        assert str(tcp_target("db", 5432)) == "db:5432"

    def test_display_brackets_ipv6(self) -> None:
        """Test that IPv6 hosts are bracketed."""
        assert tcp_target("::1", 80).display() == "[::1]:80"

    @pytest.mark.parametrize("port", [0, 65536, -1, True, "80"])
    def test_rejects_invalid_ports(self, port: object) -> None:
        """Test that out-of-range or non-integer ports are rejected."""
        with pytest.raises(InvalidPortError):
            TcpTarget(host="db", port=port)  # type: ignore[arg-type]

    def test_rejects_invalid_host(self) -> None:
        """Test that the host is validated at construction."""
        with pytest.raises(InvalidHostnameError):
            TcpTarget(host="-db", port=5432)

    def test_rate_limit_key(self) -> None:
        """Test the normalized key used by the rate limiter."""
        assert tcp_target("db", 5432).rate_limit_key() == "tcp://db:5432"

    def test_kind_and_ports(self) -> None:
        """Test kind and port accessors."""
        target = tcp_target("db", 5432)
        assert target.kind is TargetKind.TCP
        assert target.hostname == "db"
        assert target.effective_port == 5432

    def test_is_immutable(self) -> None:
        """Test that targets cannot be mutated."""
        target = tcp_target("db", 5432)
        with pytest.raises(AttributeError):
            target.port = 1  # type: ignore[misc]


class TestHttpTarget:
    """Tests for HttpTarget."""

    def test_defaults(self) -> None:
        """Test default status and headers."""
        target = http_target("http://api/health")
        assert target.expected_status == 200
        assert target.headers == ()
        assert target.kind is TargetKind.HTTP
        assert target.display() == "http://api/health"

    @pytest.mark.parametrize("url", ["ftp://host/file", "host:80", "http://", "https:///path"])
    def test_rejects_bad_urls(self, url: str) -> None:
        """Test that non-http(s) or host-less URLs are rejected."""
        with pytest.raises(InvalidTargetError):
            http_target(url)

    def test_rejects_out_of_range_port(self) -> None:
        """Test that an explicit port above 65535 is rejected."""
        with pytest.raises(InvalidTargetError):
            http_target("http://api:70000/")

    @pytest.mark.parametrize("status", [99, 600, 0])
    def test_rejects_out_of_range_status(self, status: int) -> None:
        """Test that expected status must be 100-599."""
        with pytest.raises(InvalidTargetError, match="status"):
            http_target("http://api/", expected_status=status)

    def test_headers_from_mapping(self) -> None:
        """Test that a mapping is converted to ordered pairs."""
        target = http_target("http://api/", headers={"X-Token": "abc", "Accept": "json"})
        assert target.headers == (("X-Token", "abc"), ("Accept", "json"))

    def test_headers_list_is_frozen_to_tuple(self) -> None:
        """Test that a list of pairs becomes a tuple so the target stays hashable."""
        target = HttpTarget("http://api/", 200, [("X-A", "1")])  # type: ignore[arg-type]
        assert target.headers == (("X-A", "1"),)
        assert hash(target) == hash(HttpTarget("http://api/", 200, (("X-A", "1"),)))

    @pytest.mark.parametrize(
        "headers",
        [[("", "v")], [("X-A", "")], [("X A", "v")], [("X:A", "v")]],
    )
    def test_rejects_bad_headers(self, headers: list[tuple[str, str]]) -> None:
        """Test header name/value validation."""
        with pytest.raises(InvalidTargetError):
            http_target("http://api/", headers=headers)

    @pytest.mark.parametrize(
        "value", ["café", "line\r\nX-Injected: 1", "a\nb", "bell\x07", "del\x7f"]
    )
    def test_rejects_unprintable_header_values(self, value: str) -> None:
        """Test that header values must be printable ASCII without CR or LF."""
        with pytest.raises(InvalidTargetError, match="printable ASCII"):
            http_target("http://api/", headers={"X-User": value})

    def test_accepts_spaces_and_tabs_in_header_values(self) -> None:
        """Test that inner whitespace and punctuation are allowed in values."""
        target = http_target("http://api/", headers={"Authorization": "Bearer a.b\tc=="})
        assert target.headers == (("Authorization", "Bearer a.b\tc=="),)

    def test_effective_port_and_key(self) -> None:
        """Test default ports and rate limit keys."""
        assert http_target("http://api/").effective_port == 80
        assert http_target("https://api/").effective_port == 443
        assert http_target("https://api:8443/").port == 8443
        assert http_target("https://api/").port is None
        assert http_target("https://api/x").rate_limit_key() == "http://api:443"
        assert http_target("http://api:8080/x").rate_limit_key() == "http://api:8080"


class TestParseTarget:
    """Tests for parse_target."""

    def test_tcp(self) -> None:
        """Test host:port parsing."""
        assert parse_target("db:5432") == TcpTarget("db", 5432)

    def test_ipv6(self) -> None:
        """Test bracketed IPv6 parsing."""
        assert parse_target("[::1]:8080") == TcpTarget("::1", 8080)

    def test_url_uses_status_and_headers(self) -> None:
        """Test that URL targets get the default status and headers."""
        target = parse_target("https://api/ready", default_status=204, headers=[("X-A", "1")])
        assert target == HttpTarget("https://api/ready", 204, (("X-A", "1"),))

    @pytest.mark.parametrize(
        "text",
        ["db", "db:", "db:abc", ":80", "::1:80", "[::1]80", "tcp://db:5432", "db:99999"],
    )
    def test_rejects_malformed(self, text: str) -> None:
        """Test that malformed target strings are rejected."""
        with pytest.raises(InvalidTargetError):
            parse_target(text)

    def test_same_input_yields_equal_targets(self) -> None:
        """Test that parsing is deterministic."""
        assert parse_target("db:5432") == parse_target("db:5432")
        assert parse_target("http://api/h") == parse_target("http://api/h")


class TestHelpers:
    """Tests for batch constructors."""

    def test_tcp_ports(self) -> None:
        """Test building one target per port."""
        assert tcp_ports("db", [1, 2]) == [TcpTarget("db", 1), TcpTarget("db", 2)]

    def test_localhost(self) -> None:
        """Test the localhost shortcut."""
        assert localhost(3000).display() == "localhost:3000"
