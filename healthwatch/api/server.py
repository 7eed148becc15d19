"""FastAPI server for the health service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from healthwatch import __version__
from healthwatch.api.health_routes import build_health_router
from healthwatch.config import Settings
from healthwatch.health.aggregator import Aggregator
from healthwatch.health.errors import SerializationError
from healthwatch.health.registry import ProbeRegistry
from healthwatch.health.scheduler import HealthHistory, HealthScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start background polling on startup, release probe threads on shutdown."""
    settings: Settings = app.state.settings

    scheduler = None
    if settings.poll_interval > 0:
        scheduler = HealthScheduler(
            app.state.aggregator,
            interval=settings.poll_interval,
            history=HealthHistory(max_entries=settings.history_size),
        )
        app.state.scheduler = scheduler
        try:
            await scheduler.start()
        except Exception:
            logger.exception("Health scheduler failed to start")

    yield

    # Shutdown
    if scheduler:
        await scheduler.stop()
    app.state.aggregator.close()


async def serialization_error_handler(request: Request, exc: SerializationError) -> JSONResponse:
    logger.error("Serialization failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(settings: Settings | None = None, registry: ProbeRegistry | None = None) -> FastAPI:
    """Build the app. Raises ``ConfigurationError`` for bad probe configuration."""
    settings = settings or Settings()
    if registry is None:
        registry = ProbeRegistry.from_settings(settings)

    app = FastAPI(
        title=f"{settings.api_name} - Health",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.aggregator = Aggregator(registry, cache_ttl=settings.cache_ttl)
    app.state.scheduler = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_exception_handler(SerializationError, serialization_error_handler)
    app.include_router(build_health_router(settings))

    logger.info(
        "Health endpoints: %s %s %s (%d probes)",
        settings.health_path, settings.health_info_path, settings.health_ui_path, len(registry),
    )
    return app
