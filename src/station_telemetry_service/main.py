"""aiohttp application entrypoint."""
from __future__ import annotations

from typing import Any

import structlog
from aiohttp import web
from aiohttp_cors import ResourceOptions, setup as cors_setup

from station_telemetry_service.api.routes import catalog, simulator, stream, telemetry
from station_telemetry_service.core.logging_config import configure_logging
from station_telemetry_service.db.pool import close_pool, ensure_schema, init_pool
from station_telemetry_service.middleware.errors import error_middleware
from station_telemetry_service.middleware.trace import create_trace_middleware
from station_telemetry_service.repositories.telemetry import TelemetryRepository
from station_telemetry_service.services.catalog import StationCatalog
from station_telemetry_service.services.dependencies import (
    CATALOG_KEY,
    HISTORY_SERVICE_KEY,
    INGEST_SERVICE_KEY,
    REGISTRY_KEY,
    REPOSITORY_KEY,
    SIMULATOR_KEY,
)
from station_telemetry_service.services.history import TelemetryHistoryService
from station_telemetry_service.services.ingest import TelemetryIngestService
from station_telemetry_service.services.live import LiveChannelRegistry
from station_telemetry_service.services.simulator import TelemetrySimulator
from station_telemetry_service.settings import PROJECT_ROOT, settings

logger = structlog.get_logger(__name__)

OPENAPI_PATH = PROJECT_ROOT / "openapi" / "openapi.yaml"


async def init_repository(app: web.Application) -> None:
    db_pool = await init_pool(str(settings.database_url), settings.db_pool_size, app)
    if settings.db_ensure_schema:
        await ensure_schema(db_pool)
    app[REPOSITORY_KEY] = TelemetryRepository(db_pool)


async def init_services(app: web.Application) -> None:
    app[CATALOG_KEY] = StationCatalog.load(settings.seed_dir)
    repository = app[REPOSITORY_KEY]
    ingest_service = TelemetryIngestService(repository, app[REGISTRY_KEY])
    app[INGEST_SERVICE_KEY] = ingest_service
    app[HISTORY_SERVICE_KEY] = TelemetryHistoryService(repository)
    app[SIMULATOR_KEY] = TelemetrySimulator(
        ingest_service,
        iterations=settings.sim_iterations,
        interval_seconds=settings.sim_interval_seconds,
    )


async def stop_simulations(app: web.Application) -> None:
    if SIMULATOR_KEY in app:
        await app[SIMULATOR_KEY].close()


async def healthcheck(_request: web.Request) -> web.Response:
    return web.json_response({"status": "ok", "service": settings.app_name, "env": settings.env})


async def openapi_spec(_request: web.Request) -> web.StreamResponse:
    return web.FileResponse(OPENAPI_PATH, headers={"Content-Type": "application/yaml"})


def create_app(repository: Any = None) -> web.Application:
    """Build the application.

    ``repository`` replaces the asyncpg-backed store (no pool is opened); it must
    provide ``insert_samples`` and ``list_since`` like ``TelemetryRepository``.
    """
    app = web.Application(
        middlewares=[create_trace_middleware(settings.app_name), error_middleware],
    )

    cors = cors_setup(
        app,
        defaults={
            origin: ResourceOptions(
                allow_credentials=True,
                expose_headers="*",
                allow_headers="*",
                allow_methods="*",
            )
            for origin in settings.cors_allowed_origins
        },
    )

    app.router.add_get("/health", healthcheck)
    app.router.add_get("/api/health", healthcheck)
    app.router.add_get("/openapi.yaml", openapi_spec)
    app.add_routes(catalog.routes)
    app.add_routes(telemetry.routes)
    app.add_routes(stream.routes)
    app.add_routes(simulator.routes)

    app[REGISTRY_KEY] = LiveChannelRegistry(queue_size=settings.live_queue_size)
    if repository is None:
        app.on_startup.append(init_repository)
        app.on_cleanup.append(close_pool)
    else:
        app[REPOSITORY_KEY] = repository
    app.on_startup.append(init_services)
    app.on_shutdown.append(stop_simulations)

    for route in list(app.router.routes()):
        cors.add(route)

    return app


def main() -> None:
    configure_logging(settings.log_level, json=settings.log_json)
    logger.info("service_starting", host=settings.host, port=settings.port, env=settings.env)
    web.run_app(create_app(), host=settings.host, port=settings.port, access_log=None)


if __name__ == "__main__":
    main()
