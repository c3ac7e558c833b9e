"""API utilities."""
from __future__ import annotations

import json
from typing import Any

from aiohttp import web


def json_error(
    exc_cls: type[web.HTTPException],
    message: str,
    **detail: Any,
) -> web.HTTPException:
    """Build an HTTP error whose body is ``{"error": message, **detail}``."""
    body = json.dumps({"error": message, **detail}, default=str)
    return exc_cls(text=body, content_type="application/json")


async def read_json(request: web.Request) -> dict[str, Any]:
    try:
        data = await request.json()
    except Exception as exc:  # pragma: no cover
        raise json_error(web.HTTPBadRequest, "Invalid JSON payload") from exc
    if not isinstance(data, dict):
        raise json_error(web.HTTPBadRequest, "JSON body must be an object")
    return data


def int_query_param(request: web.Request, name: str, default: int) -> int:
    raw = request.rel_url.query.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise json_error(
            web.HTTPBadRequest,
            "malformed time range",
            field=name,
            value=raw,
        ) from exc
