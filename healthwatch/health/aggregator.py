"""Aggregator: runs every registered probe and folds the results into a Report.

Probes execute concurrently, each under its own deadline. A probe that times
out or raises becomes an Unhealthy entry; run() itself never raises.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor

from .engine import HealthStatus, Probe, ProbeResult, Report
from .errors import ProbeError, ProbeExecutionError, ProbeTimeoutError
from .registry import ProbeRegistry

logger = logging.getLogger(__name__)

_MIN_WORKERS = 4


class Aggregator:
    """Executes the probes of a registry and builds Reports.

    Blocking checks run in a thread pool so they never stall the event loop;
    a timed-out thread is abandoned, not killed. Each probe has at most one
    blocking call in flight: overlapping runs wait on that call instead of
    starting another, and the pool holds at least one worker per probe, so a
    hung dependency can never queue the others behind it.

    ``cache_ttl`` > 0 lets callers within that window reuse the last report
    instead of re-probing.
    """

    def __init__(
        self,
        registry: ProbeRegistry,
        cache_ttl: float = 0.0,
        max_workers: int | None = None,
    ) -> None:
        self.registry = registry
        self.cache_ttl = cache_ttl
        self._min_workers = max_workers or _MIN_WORKERS
        self._pool_size = max(self._min_workers, len(registry))
        self._executor = ThreadPoolExecutor(max_workers=self._pool_size, thread_name_prefix="probe")
        self._inflight: dict[str, Future] = {}
        self._cached: Report | None = None
        self._cached_at = 0.0

    async def run(self) -> Report:
        """Run all probes once and return a complete Report."""
        if self.cache_ttl > 0 and self._cached is not None:
            if time.monotonic() - self._cached_at < self.cache_ttl:
                return self._cached

        probes = self.registry.list()
        self._ensure_capacity(len(probes))
        t0 = time.perf_counter()
        results = await asyncio.gather(*(self._run_probe(p) for p in probes))
        total = (time.perf_counter() - t0) * 1000

        report = Report.build(zip((p.name for p in probes), results), total_duration_ms=total)
        if report.status is not HealthStatus.HEALTHY:
            logger.info("Aggregation: %s (%d probes, %.0fms)", report.status.value, len(probes), total)
        else:
            logger.debug("Aggregation: %s (%d probes, %.0fms)", report.status.value, len(probes), total)

        if self.cache_ttl > 0:
            self._cached = report
            self._cached_at = time.monotonic()
        return report

    def run_sync(self) -> Report:
        """Blocking wrapper around run() for callers without an event loop."""
        return asyncio.run(self.run())

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    async def _run_probe(self, probe: Probe) -> ProbeResult:
        t0 = time.perf_counter()
        try:
            result = await asyncio.wait_for(self._invoke(probe), timeout=probe.timeout)
            if not isinstance(result, ProbeResult):
                raise ProbeExecutionError(probe.name, f"check returned {type(result).__name__}, not ProbeResult")
        except asyncio.TimeoutError:
            return self._failed(ProbeTimeoutError(probe.name, probe.timeout), t0)
        except ProbeError as e:
            return self._failed(e, t0)
        except Exception as e:
            return self._failed(ProbeExecutionError(probe.name, e), t0)

        duration = round((time.perf_counter() - t0) * 1000, 1)
        return ProbeResult(
            status=result.status,
            description=result.description,
            error=result.error,
            duration_ms=duration,
            data=result.data,
        )

    def _ensure_capacity(self, n_probes: int) -> None:
        """Grow the pool so every probe can hold a worker at once."""
        if n_probes <= self._pool_size:
            return
        old = self._executor
        self._pool_size = n_probes
        self._executor = ThreadPoolExecutor(max_workers=n_probes, thread_name_prefix="probe")
        old.shutdown(wait=False)

    async def _invoke(self, probe: Probe) -> ProbeResult:
        try:
            if inspect.iscoroutinefunction(probe.check):
                return await probe.check()

            call = self._inflight.get(probe.name)
            owner = call is None or call.done()
            if owner:
                call = self._executor.submit(probe.check)
                self._inflight[probe.name] = call
            # shield: a timed-out caller must not cancel a call others share
            result = await asyncio.shield(asyncio.wrap_future(call))

            if inspect.isawaitable(result):
                if not owner:
                    # Joined a call that handed back an awaitable; only its owner may await it
                    return await self._invoke(probe)
                result = await result
            return result
        except TimeoutError as e:
            # A check's own socket/client timeout, not our deadline
            raise ProbeExecutionError(probe.name, e) from e

    @staticmethod
    def _failed(error: ProbeError, t0: float) -> ProbeResult:
        logger.warning("%s", error)
        return ProbeResult(
            status=HealthStatus.UNHEALTHY,
            error=error.message,
            duration_ms=round((time.perf_counter() - t0) * 1000, 1),
        )
