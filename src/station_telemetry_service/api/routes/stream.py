"""Live telemetry push channel (Server-Sent Events)."""
from __future__ import annotations

import structlog
from aiohttp import web

from station_telemetry_service.api.utils import json_error
from station_telemetry_service.domain.events import PingEvent, encode_sse
from station_telemetry_service.services.dependencies import get_registry
from station_telemetry_service.settings import settings

logger = structlog.get_logger(__name__)

routes = web.RouteTableDef()

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _serve_stream(request: web.Request, station_id: str) -> web.StreamResponse:
    registry = get_registry(request)
    response = web.StreamResponse(headers=SSE_HEADERS)
    await response.prepare(request)

    subscriber = registry.subscribe(station_id)
    logger.info(
        "live_channel_opened",
        station_id=station_id,
        subscribers=registry.subscriber_count(station_id),
    )
    try:
        while True:
            event = await subscriber.next_event(settings.live_keepalive_seconds)
            if event is None:
                event = PingEvent()
            await response.write(encode_sse(event))
    except ConnectionResetError:
        # Peer went away; closing is the normal end of a subscription.
        pass
    finally:
        registry.unsubscribe(subscriber)
        logger.info(
            "live_channel_closed",
            station_id=station_id,
            subscribers=registry.subscriber_count(station_id),
        )
    return response


@routes.get("/api/stream/station/{station_id}")
async def stream_station(request: web.Request) -> web.StreamResponse:
    station_id = request.match_info["station_id"].strip()
    if not station_id:
        raise json_error(web.HTTPBadRequest, "stationId required")
    return await _serve_stream(request, station_id)


@routes.get("/api/stream")
async def stream_station_by_query(request: web.Request) -> web.StreamResponse:
    """Alias of ``/api/stream/station/{station_id}`` taking ``?stationId=``."""
    query = request.rel_url.query
    station_id = (query.get("stationId") or query.get("station_id") or "").strip()
    if not station_id:
        raise json_error(web.HTTPBadRequest, "stationId required")
    return await _serve_stream(request, station_id)
