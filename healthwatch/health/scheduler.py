"""Health scheduler: re-runs the aggregator at a fixed interval.

Keeps the latest Report for the dashboard API and an in-memory history of
per-probe status transitions for the process lifetime.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from typing import Any

from .aggregator import Aggregator
from .engine import HealthStatus, Report

logger = logging.getLogger(__name__)


class HealthHistory:
    """Bounded per-probe log of status changes (only transitions are kept)."""

    def __init__(self, max_entries: int = 50) -> None:
        self.max_entries = max_entries
        self._last: dict[str, HealthStatus] = {}
        self._events: dict[str, deque[dict[str, Any]]] = {}

    def record(self, report: Report) -> list[dict[str, Any]]:
        """Record transitions found in ``report``; returns the new events."""
        events = []
        at = report.generated_at.isoformat()
        for name, result in report.entries.items():
            prev = self._last.get(name)
            self._last[name] = result.status
            if prev is result.status:
                continue
            event = {
                "name": name,
                "from": prev.value if prev else None,
                "to": result.status.value,
                "at": at,
                "error": result.error,
            }
            self._events.setdefault(name, deque(maxlen=self.max_entries)).append(event)
            events.append(event)
        return events

    def for_probe(self, name: str) -> list[dict[str, Any]]:
        """Transitions for one probe, newest first."""
        return list(reversed(self._events.get(name, ())))

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {name: self.for_probe(name) for name in self._events}


class HealthScheduler:
    """Runs the aggregator on an asyncio loop and keeps the latest report."""

    def __init__(
        self,
        aggregator: Aggregator,
        interval: float,
        history: HealthHistory | None = None,
        on_report: Callable[[Report], Any] | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.interval = interval
        self.history = history or HealthHistory()
        self.on_report = on_report
        self.latest: Report | None = None
        self._task: asyncio.Task[None] | None = None
        self._running = False

    async def start(self) -> None:
        """Start the polling loop. No-op if already running."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop(), name="health-scheduler")
        logger.info("Health scheduler started (interval=%ss)", self.interval)

    async def stop(self) -> None:
        """Stop the polling loop."""
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Health scheduler stopped")

    async def run_now(self) -> Report:
        """Run one aggregation cycle and record it."""
        report = await self.aggregator.run()
        self.latest = report
        for event in self.history.record(report):
            logger.info(
                "Probe %s: %s -> %s", event["name"], event["from"] or "none", event["to"],
            )
        if self.on_report:
            try:
                self.on_report(report)
            except Exception:
                logger.exception("Report callback error")
        return report

    async def _loop(self) -> None:
        while self._running:
            try:
                await self.run_now()
            except Exception:
                logger.exception("Scheduled health run failed")
            await asyncio.sleep(self.interval)
