"""Telemetry ingest and bucketed history endpoints."""
from __future__ import annotations

import structlog
from aiohttp import web
from pydantic import ValidationError

from station_telemetry_service.api.utils import int_query_param, json_error, read_json
from station_telemetry_service.core.exceptions import InvalidSubmissionError, RepositoryError
from station_telemetry_service.domain.dto import TelemetrySubmissionDTO
from station_telemetry_service.services.dependencies import get_history_service, get_ingest_service
from station_telemetry_service.settings import settings

logger = structlog.get_logger(__name__)

routes = web.RouteTableDef()


def _validation_message(exc: ValidationError) -> str:
    if any(error["loc"] and error["loc"][0] == "stationId" for error in exc.errors()):
        return "stationId required"
    return "invalid telemetry submission"


@routes.post("/api/telemetry")
async def ingest_telemetry(request: web.Request) -> web.Response:
    """Ingest one telemetry submission for a station."""
    body = await read_json(request)
    try:
        dto = TelemetrySubmissionDTO.model_validate(body)
    except ValidationError as exc:
        raise json_error(
            web.HTTPBadRequest,
            _validation_message(exc),
            details=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc

    service = get_ingest_service(request)
    try:
        accepted = await service.ingest(dto)
    except InvalidSubmissionError as exc:
        raise json_error(web.HTTPBadRequest, exc.message, **exc.detail) from exc
    except RepositoryError as exc:
        logger.exception("telemetry_ingest_failed", station_id=dto.station_id)
        raise json_error(web.HTTPInternalServerError, "ingest failed") from exc

    return web.json_response({"status": "accepted", "accepted": accepted}, status=202)


@routes.get("/api/telemetry/{station_id}")
async def telemetry_history(request: web.Request) -> web.Response:
    """Bucketed history for a station.

    Query params:
      - minutes: lookback window, clamped to 1..1440 (default 10)
      - bucket: bucket width in seconds, clamped to 1..3600 (default 60)
    """
    station_id = request.match_info["station_id"].strip()
    if not station_id:
        raise json_error(web.HTTPBadRequest, "stationId required")
    minutes = int_query_param(request, "minutes", settings.history_default_minutes)
    bucket_seconds = int_query_param(request, "bucket", settings.history_default_bucket_seconds)

    service = get_history_service(request)
    try:
        series = await service.history(station_id, minutes=minutes, bucket_seconds=bucket_seconds)
    except RepositoryError as exc:
        logger.exception("telemetry_history_failed", station_id=station_id)
        raise json_error(web.HTTPInternalServerError, "query failed") from exc

    return web.json_response(series.as_dict())
