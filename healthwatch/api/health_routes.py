"""Health endpoints.

Paths come from settings (defaults shown):
  GET /health       200 if Healthy, else 503; plain-text status
  GET /health-info  machine JSON, always 200
  GET /health-ui    dashboard JSON, always 200
  GET /monitor      static dashboard page
  GET /monitor/api  latest scheduled report + status-change history

Every health request runs a fresh aggregation; probe failures show up in the
body, never as a 500.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import FileResponse, PlainTextResponse

from healthwatch.config import Settings
from healthwatch.health.engine import HealthStatus, Report
from healthwatch.health.reporter import encode, to_machine_readable, to_ui_format

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent.parent / "static"


def _json(payload: Any, status_code: int = 200) -> Response:
    return Response(content=encode(payload), status_code=status_code, media_type="application/json")


def _probe_tags(request: Request) -> dict[str, tuple[str, ...]]:
    return {p.name: p.tags for p in request.app.state.registry.list()}


def build_health_router(settings: Settings) -> APIRouter:
    """Create the health router with the configured paths."""
    router = APIRouter()

    async def health(request: Request) -> Response:
        report: Report = await request.app.state.aggregator.run()
        code = 200 if report.status is HealthStatus.HEALTHY else 503
        return PlainTextResponse(report.status.value, status_code=code)

    async def health_info(request: Request) -> Response:
        report = await request.app.state.aggregator.run()
        return _json(to_machine_readable(report))

    async def health_ui(request: Request) -> Response:
        report = await request.app.state.aggregator.run()
        return _json(to_ui_format(report, name=settings.api_name, tags=_probe_tags(request)))

    async def monitor() -> FileResponse:
        return FileResponse(STATIC_DIR / "monitor.html")

    async def monitor_api(request: Request) -> Response:
        scheduler = getattr(request.app.state, "scheduler", None)
        latest = scheduler.latest if scheduler else None
        return _json({
            "health_ui_path": settings.health_ui_path,
            "report": (
                to_ui_format(latest, name=settings.api_name, tags=_probe_tags(request))
                if latest else None
            ),
            "history": scheduler.history.to_dict() if scheduler else {},
        })

    router.add_api_route(settings.health_path, health, methods=["GET"])
    router.add_api_route(settings.health_info_path, health_info, methods=["GET"])
    router.add_api_route(settings.health_ui_path, health_ui, methods=["GET"])
    router.add_api_route(settings.monitor_path, monitor, methods=["GET"])
    router.add_api_route(settings.monitor_path.rstrip("/") + "/api", monitor_api, methods=["GET"])
    return router
