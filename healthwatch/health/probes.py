"""Built-in probe checks: HTTP(S), TCP connect, DNS resolve.

Each check is a blocking function returning a ProbeResult. The aggregator
runs them in a thread pool and enforces the deadline; the timeouts passed
here only keep abandoned threads from lingering.
"""

from __future__ import annotations

import functools
import logging
import socket
import time
from urllib.parse import urlsplit

import httpx

from .engine import Probe, ProbeResult
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Responses slower than this are reported as Degraded
SLOW_RESPONSE_MS = 3000

_DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
    "postgres": 5432,
    "postgresql": 5432,
    "mysql": 3306,
    "redis": 6379,
    "mongodb": 27017,
    "amqp": 5672,
}


# ── Check runners ────────────────────────────────────────────────────────────


def http_check(url: str, expected_status: int = 200, timeout: float = 5.0) -> ProbeResult:
    """GET ``url`` and compare the status code. Connection errors propagate."""
    t0 = time.perf_counter()
    with httpx.Client(timeout=timeout, follow_redirects=True) as client:
        resp = client.get(url)
    latency = round((time.perf_counter() - t0) * 1000, 1)

    if resp.status_code != expected_status:
        return ProbeResult.unhealthy(
            f"Expected {expected_status}, got {resp.status_code}",
            url=url, status_code=resp.status_code, latency_ms=latency,
        )
    if latency > SLOW_RESPONSE_MS:
        return ProbeResult.degraded(
            f"{resp.status_code} OK in {latency}ms (slow)",
            url=url, status_code=resp.status_code, latency_ms=latency,
        )
    return ProbeResult.healthy(
        f"{resp.status_code} OK",
        url=url, status_code=resp.status_code, latency_ms=latency,
    )


def tcp_check(host: str, port: int, timeout: float = 5.0) -> ProbeResult:
    """Raw TCP port connectivity check."""
    with socket.create_connection((host, port), timeout=timeout):
        pass
    return ProbeResult.healthy(f"Port {port} open", host=host, port=port)


def dns_check(hostname: str) -> ProbeResult:
    """DNS resolution check."""
    addrs = socket.getaddrinfo(hostname, None)
    ips = sorted({a[4][0] for a in addrs})
    return ProbeResult.healthy(f"Resolved to {', '.join(ips[:3])}", ips=ips)


# ── Endpoint parsing ─────────────────────────────────────────────────────────


def probe_from_endpoint(endpoint: str, timeout: float = 5.0) -> Probe:
    """Build a probe from a target URL or connection string.

    ``http(s)://`` targets get an HTTP probe, ``dns://host`` a DNS probe and
    any other ``scheme://host[:port]`` a TCP probe. A ``name=`` prefix
    overrides the derived probe name (``"db=postgres://db:5432"``).
    """
    name, sep, target = endpoint.partition("=")
    if not sep or "://" in name:
        name, target = "", endpoint
    target = target.strip()

    try:
        parts = urlsplit(target)
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid probe endpoint '{endpoint}': {e}") from e

    scheme = parts.scheme.lower()
    host = parts.hostname
    if not scheme or not host:
        raise ConfigurationError(f"Invalid probe endpoint '{endpoint}': expected scheme://host[:port]")

    name = name.strip() or (f"{host}:{port}" if port else host)

    if scheme in ("http", "https"):
        check = functools.partial(http_check, target, timeout=timeout)
        tags = ("http",)
    elif scheme == "dns":
        check = functools.partial(dns_check, host)
        tags = ("dns",)
    else:
        port = port or _DEFAULT_PORTS.get(scheme)
        if port is None:
            raise ConfigurationError(f"Invalid probe endpoint '{endpoint}': no port for scheme '{scheme}'")
        check = functools.partial(tcp_check, host, port, timeout=timeout)
        tags = ("tcp", scheme) if scheme != "tcp" else ("tcp",)

    logger.debug("Probe %s -> %s (%s)", name, target, tags[0])
    return Probe(name=name, check=check, timeout=timeout, tags=tags)
