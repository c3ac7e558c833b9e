"""Station, device and inventory endpoints."""
from __future__ import annotations

from aiohttp import web

from station_telemetry_service.api.utils import json_error
from station_telemetry_service.core.exceptions import NotFoundError
from station_telemetry_service.services.dependencies import get_catalog

routes = web.RouteTableDef()


@routes.get("/api/stations")
async def list_stations(request: web.Request) -> web.Response:
    catalog = get_catalog(request)
    return web.json_response([station.model_dump() for station in catalog.stations()])


@routes.get("/api/stations/{station_id}/devices")
async def list_station_devices(request: web.Request) -> web.Response:
    catalog = get_catalog(request)
    devices = catalog.devices(request.match_info["station_id"])
    return web.json_response([device.model_dump() for device in devices])


@routes.get("/api/devices")
async def list_devices(request: web.Request) -> web.Response:
    """Devices, optionally filtered by ``?station_id=``."""
    catalog = get_catalog(request)
    station_id = request.rel_url.query.get("station_id") or None
    return web.json_response([device.model_dump() for device in catalog.devices(station_id)])


@routes.get("/api/devices/{device_id}")
async def get_device(request: web.Request) -> web.Response:
    catalog = get_catalog(request)
    try:
        device = catalog.device(request.match_info["device_id"])
    except NotFoundError as exc:
        raise json_error(web.HTTPNotFound, str(exc)) from exc
    return web.json_response(device.model_dump())


@routes.get("/api/inventory")
async def inventory(request: web.Request) -> web.Response:
    """Device counts grouped by type, most common first."""
    catalog = get_catalog(request)
    return web.json_response([entry.model_dump() for entry in catalog.inventory()])
