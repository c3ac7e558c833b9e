"""Application-scoped service instances and their request accessors."""
from __future__ import annotations

from aiohttp import web

from station_telemetry_service.repositories.telemetry import TelemetryRepository
from station_telemetry_service.services.catalog import StationCatalog
from station_telemetry_service.services.history import TelemetryHistoryService
from station_telemetry_service.services.ingest import TelemetryIngestService
from station_telemetry_service.services.live import LiveChannelRegistry
from station_telemetry_service.services.simulator import TelemetrySimulator

REPOSITORY_KEY = web.AppKey("telemetry_repository", TelemetryRepository)
REGISTRY_KEY = web.AppKey("live_registry", LiveChannelRegistry)
CATALOG_KEY = web.AppKey("station_catalog", StationCatalog)
INGEST_SERVICE_KEY = web.AppKey("ingest_service", TelemetryIngestService)
HISTORY_SERVICE_KEY = web.AppKey("history_service", TelemetryHistoryService)
SIMULATOR_KEY = web.AppKey("simulator", TelemetrySimulator)


def get_ingest_service(request: web.Request) -> TelemetryIngestService:
    return request.app[INGEST_SERVICE_KEY]


def get_history_service(request: web.Request) -> TelemetryHistoryService:
    return request.app[HISTORY_SERVICE_KEY]


def get_registry(request: web.Request) -> LiveChannelRegistry:
    return request.app[REGISTRY_KEY]


def get_catalog(request: web.Request) -> StationCatalog:
    return request.app[CATALOG_KEY]


def get_simulator(request: web.Request) -> TelemetrySimulator:
    return request.app[SIMULATOR_KEY]
