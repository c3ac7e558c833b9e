"""Demo traffic trigger."""
from __future__ import annotations

from aiohttp import web

from station_telemetry_service.api.utils import json_error
from station_telemetry_service.services.dependencies import get_simulator

routes = web.RouteTableDef()


@routes.post("/api/sim/start/{station_id}")
async def start_simulation(request: web.Request) -> web.Response:
    """Start a short simulated run for the station; returns before it finishes."""
    station_id = request.match_info["station_id"].strip()
    if not station_id:
        raise json_error(web.HTTPBadRequest, "stationId required")
    simulator = get_simulator(request)
    simulator.start(station_id)
    return web.json_response(
        {"ok": True, "stationId": station_id, "iterations": simulator.iterations}
    )
