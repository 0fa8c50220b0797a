"""AquaWatch server — main entry point.

This is the only file that knows about concrete implementations.
It wires together the core, storage, and API layers.

Run with:  uvicorn --factory aquawatch.main:create_app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from aquawatch.api.analytics import router as analytics_router
from aquawatch.api.monitoring import router as monitoring_router
from aquawatch.api.reports import router as reports_router
from aquawatch.config import AppConfig, load_config
from aquawatch.core.processor import ReportProcessor
from aquawatch.core.query import InvalidStatusFilter
from aquawatch.core.stats import ServerStats
from aquawatch.storage.base import ReportStorage
from aquawatch.storage.file_storage import FileReportStorage

log = structlog.get_logger()


def _setup_logging(config: AppConfig) -> None:
    """Configure structlog based on the logging config."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.logging.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.logging.level.upper()),
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    config: AppConfig = app.state.config
    log.info("server_started",
             env=config.server.env,
             host=config.server.host,
             port=config.server.port,
             reports_indexed=len(app.state.storage))

    yield

    log.info("server_stopped")


async def _invalid_status_handler(request: Request, exc: InvalidStatusFilter) -> JSONResponse:
    log.info("request_rejected", path=request.url.path, reason=str(exc))
    return JSONResponse(content={"error": str(exc)}, status_code=400)


def create_app(config: AppConfig | None = None,
               storage: ReportStorage | None = None) -> FastAPI:
    """Build the application with its components attached to ``app.state``."""
    if config is None:
        config = load_config()
    _setup_logging(config)

    log.info("server_starting", env=config.server.env,
             storage_dir=config.storage.base_dir)

    if storage is None:
        storage = FileReportStorage(base_dir=config.storage.base_dir)
    stats = ServerStats(active_window_seconds=config.limits.active_window_seconds)
    processor = ReportProcessor(
        storage=storage,
        stats=stats,
        max_notes_length=config.limits.max_notes_length,
        max_photos=config.limits.max_photos,
    )

    app = FastAPI(
        title="AquaWatch",
        description="Citizen water-quality reporting server",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.storage = storage
    app.state.stats = stats
    app.state.processor = processor

    app.add_exception_handler(InvalidStatusFilter, _invalid_status_handler)
    app.include_router(reports_router)
    app.include_router(analytics_router)
    app.include_router(monitoring_router)
    return app


def run() -> None:
    """Console entry point: serve with uvicorn using the loaded config."""
    import uvicorn

    config = load_config()
    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)
