"""Last-resort error middleware."""
from __future__ import annotations

import structlog
from aiohttp import web

from station_telemetry_service.middleware.trace import Handler

logger = structlog.get_logger(__name__)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Turn unhandled exceptions into a JSON 500 without leaking their text."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("unhandled_error")
        return web.json_response({"error": "Internal server error"}, status=500)
