"""Health model: statuses, probe results, probes and reports.

A Report is built fresh for every aggregation run. Its overall status is the
most severe status among its entries, and Healthy when there are none.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Union

# ── Models ───────────────────────────────────────────────────────────────────


class HealthStatus(str, Enum):
    HEALTHY = "Healthy"
    DEGRADED = "Degraded"
    UNHEALTHY = "Unhealthy"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    def __str__(self) -> str:
        return self.value


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


def worst_status(statuses: Iterable[HealthStatus]) -> HealthStatus:
    """Most severe status in ``statuses``; Healthy for an empty iterable."""
    return max(statuses, key=lambda s: s.severity, default=HealthStatus.HEALTHY)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single probe invocation."""

    status: HealthStatus
    description: str | None = None
    error: str | None = None
    duration_ms: float = 0.0
    data: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def healthy(cls, description: str | None = None, **data: Any) -> ProbeResult:
        return cls(HealthStatus.HEALTHY, description=description, data=data)

    @classmethod
    def degraded(cls, description: str | None = None, error: str | None = None, **data: Any) -> ProbeResult:
        return cls(HealthStatus.DEGRADED, description=description, error=error, data=data)

    @classmethod
    def unhealthy(cls, error: str | None = None, description: str | None = None, **data: Any) -> ProbeResult:
        return cls(HealthStatus.UNHEALTHY, description=description, error=error, data=data)


ProbeCheck = Callable[[], Union[ProbeResult, Awaitable[ProbeResult]]]


@dataclass(frozen=True)
class Probe:
    """A named check against one dependency."""

    name: str
    check: ProbeCheck
    timeout: float = 5.0
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Report:
    """Combined verdict for one aggregation run."""

    status: HealthStatus
    entries: Mapping[str, ProbeResult]
    generated_at: datetime
    total_duration_ms: float = 0.0

    @classmethod
    def build(
        cls,
        entries: Iterable[tuple[str, ProbeResult]],
        total_duration_ms: float = 0.0,
        generated_at: datetime | None = None,
    ) -> Report:
        ordered = dict(entries)
        return cls(
            status=worst_status(r.status for r in ordered.values()),
            entries=MappingProxyType(ordered),
            generated_at=generated_at or datetime.now(timezone.utc),
            total_duration_ms=round(total_duration_ms, 1),
        )
