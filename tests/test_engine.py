"""Tests for the health model: statuses, results, reports."""

from __future__ import annotations

from datetime import timezone

import pytest

from healthwatch.health.engine import HealthStatus, ProbeResult, Report, worst_status


# ── HealthStatus ─────────────────────────────────────────────────────────────


class TestHealthStatus:
    def test_names_match_values(self) -> None:
        assert [s.value for s in HealthStatus] == ["Healthy", "Degraded", "Unhealthy"]

    def test_severity_order(self) -> None:
        assert HealthStatus.HEALTHY.severity < HealthStatus.DEGRADED.severity
        assert HealthStatus.DEGRADED.severity < HealthStatus.UNHEALTHY.severity

    def test_str_is_name(self) -> None:
        assert str(HealthStatus.DEGRADED) == "Degraded"

    @pytest.mark.parametrize(
        ("statuses", "expected"),
        [
            ([], HealthStatus.HEALTHY),
            ([HealthStatus.HEALTHY, HealthStatus.HEALTHY], HealthStatus.HEALTHY),
            ([HealthStatus.HEALTHY, HealthStatus.DEGRADED], HealthStatus.DEGRADED),
            ([HealthStatus.UNHEALTHY, HealthStatus.DEGRADED, HealthStatus.HEALTHY], HealthStatus.UNHEALTHY),
        ],
    )
    def test_worst_status(self, statuses, expected) -> None:
        assert worst_status(statuses) is expected


# ── ProbeResult ──────────────────────────────────────────────────────────────


class TestProbeResult:
    def test_constructors(self) -> None:
        assert ProbeResult.healthy("ok").status is HealthStatus.HEALTHY
        r = ProbeResult.unhealthy("connection refused", port=5432)
        assert r.status is HealthStatus.UNHEALTHY
        assert r.error == "connection refused"
        assert r.data == {"port": 5432}

    def test_immutable(self) -> None:
        r = ProbeResult.healthy()
        with pytest.raises(AttributeError):
            r.status = HealthStatus.UNHEALTHY  # type: ignore[misc]


# ── Report ───────────────────────────────────────────────────────────────────


class TestReport:
    def test_empty_report_is_healthy(self) -> None:
        report = Report.build([])
        assert report.status is HealthStatus.HEALTHY
        assert len(report.entries) == 0

    def test_status_is_worst_entry(self) -> None:
        report = Report.build([
            ("a", ProbeResult.healthy()),
            ("b", ProbeResult.degraded()),
        ])
        assert report.status is HealthStatus.DEGRADED

    def test_entries_keep_order(self) -> None:
        names = ["zeta", "alpha", "mid"]
        report = Report.build((n, ProbeResult.healthy()) for n in names)
        assert list(report.entries) == names

    def test_entries_read_only(self) -> None:
        report = Report.build([("a", ProbeResult.healthy())])
        with pytest.raises(TypeError):
            report.entries["b"] = ProbeResult.healthy()  # type: ignore[index]

    def test_generated_at_is_utc(self) -> None:
        report = Report.build([])
        assert report.generated_at.tzinfo is timezone.utc
