"""Tests for the built-in probe checks and endpoint parsing."""

from __future__ import annotations

import socket
from unittest.mock import MagicMock, patch

import httpx
import pytest

from healthwatch.health.engine import HealthStatus
from healthwatch.health.errors import ConfigurationError
from healthwatch.health.probes import dns_check, http_check, probe_from_endpoint, tcp_check


def _mock_client(mock_client_cls: MagicMock, status_code: int) -> MagicMock:
    client = mock_client_cls.return_value.__enter__.return_value
    client.get.return_value = MagicMock(status_code=status_code)
    return client


# ── HTTP check ───────────────────────────────────────────────────────────────


class TestHTTPCheck:
    @patch("healthwatch.health.probes.httpx.Client")
    def test_success(self, mock_client_cls) -> None:
        client = _mock_client(mock_client_cls, 200)
        result = http_check("http://localhost/health", timeout=3)
        assert result.status is HealthStatus.HEALTHY
        assert result.data["status_code"] == 200
        client.get.assert_called_once_with("http://localhost/health")

    @patch("healthwatch.health.probes.httpx.Client")
    def test_unexpected_status(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, 500)
        result = http_check("http://localhost/health")
        assert result.status is HealthStatus.UNHEALTHY
        assert result.error == "Expected 200, got 500"

    @patch("healthwatch.health.probes.SLOW_RESPONSE_MS", -1)
    @patch("healthwatch.health.probes.httpx.Client")
    def test_slow_is_degraded(self, mock_client_cls) -> None:
        _mock_client(mock_client_cls, 200)
        result = http_check("http://localhost/health")
        assert result.status is HealthStatus.DEGRADED

    @patch("healthwatch.health.probes.httpx.Client")
    def test_connection_error_propagates(self, mock_client_cls) -> None:
        client = mock_client_cls.return_value.__enter__.return_value
        client.get.side_effect = httpx.ConnectError("connection refused")
        with pytest.raises(httpx.ConnectError):
            http_check("http://localhost/health")


# ── TCP / DNS checks ─────────────────────────────────────────────────────────


class TestTCPCheck:
    def test_open_port(self) -> None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
            server.bind(("127.0.0.1", 0))
            server.listen(1)
            port = server.getsockname()[1]
            result = tcp_check("127.0.0.1", port, timeout=2)
        assert result.status is HealthStatus.HEALTHY
        assert result.description == f"Port {port} open"

    @patch("healthwatch.health.probes.socket.create_connection", side_effect=ConnectionRefusedError("connection refused"))
    def test_refused_propagates(self, _mock) -> None:
        with pytest.raises(ConnectionRefusedError):
            tcp_check("127.0.0.1", 1)


class TestDNSCheck:
    def test_localhost_resolves(self) -> None:
        result = dns_check("localhost")
        assert result.status is HealthStatus.HEALTHY
        assert result.data["ips"]

    def test_invalid_hostname(self) -> None:
        with pytest.raises(socket.gaierror):
            dns_check("this-host-does-not-exist-xyz.invalid")


# ── probe_from_endpoint ──────────────────────────────────────────────────────


class TestProbeFromEndpoint:
    def test_http(self) -> None:
        probe = probe_from_endpoint("http://localhost:8080/", timeout=3)
        assert probe.name == "localhost:8080"
        assert probe.timeout == 3
        assert probe.tags == ("http",)

    def test_named(self) -> None:
        probe = probe_from_endpoint("ravendb=http://localhost:8080/databases/MyOrg")
        assert probe.name == "ravendb"

    def test_query_string_is_not_a_name(self) -> None:
        probe = probe_from_endpoint("http://localhost/health?verbose=1")
        assert probe.name == "localhost"

    def test_tcp(self) -> None:
        probe = probe_from_endpoint("tcp://db.internal:5432")
        assert probe.name == "db.internal:5432"
        assert probe.tags == ("tcp",)

    def test_connection_string_default_port(self) -> None:
        probe = probe_from_endpoint("cache=redis://cache.internal")
        assert probe.tags == ("tcp", "redis")
        assert probe.check.args == ("cache.internal", 6379)

    def test_dns(self) -> None:
        probe = probe_from_endpoint("dns://example.com")
        assert probe.name == "example.com"
        assert probe.tags == ("dns",)

    @pytest.mark.parametrize(
        "endpoint",
        ["", "localhost:8080", "tcp://db.internal", "foo://host", "http://host:99999"],
    )
    def test_invalid(self, endpoint: str) -> None:
        with pytest.raises(ConfigurationError):
            probe_from_endpoint(endpoint)
