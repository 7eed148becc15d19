"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from healthwatch.config import Settings
from healthwatch.health.engine import Probe, ProbeResult
from healthwatch.health.registry import ProbeRegistry


@pytest.fixture
def settings() -> Settings:
    """Settings with no probes, no background polling and no .env file."""
    return Settings(_env_file=None, probe_endpoints=[], poll_interval=0)


@pytest.fixture
def static_probe() -> Callable[..., Probe]:
    """Factory for probes that always return the same result."""
    def _make(name: str, result: ProbeResult, timeout: float = 2.0) -> Probe:
        return Probe(name=name, check=lambda: result, timeout=timeout)
    return _make


@pytest.fixture
def make_registry() -> Callable[..., ProbeRegistry]:
    def _make(*probes: Probe) -> ProbeRegistry:
        registry = ProbeRegistry()
        for p in probes:
            registry.register(p)
        return registry
    return _make
