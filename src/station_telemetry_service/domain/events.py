"""Live channel event variants and their Server-Sent Events framing.

Every event carries an explicit ``type`` tag, repeated as the SSE ``event:`` name,
so consumers never have to guess a variant from the payload shape:

- ``hello``: sent once when a subscription opens
- ``ping``: keep-alive, carries no data and must be ignored by consumers
- ``telemetry``: dashboard snapshot published after each ingestion
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Annotated, Any, Literal, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from station_telemetry_service.domain.models import utc_now

logger = structlog.get_logger(__name__)

# Keys surfaced on the live dashboard; ``status`` is textual, the rest numeric.
SNAPSHOT_METRIC_KEYS = ("speed", "count", "pass", "fail", "suspect", "packedFg")
SNAPSHOT_STATUS_KEY = "status"


class _LiveEventBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ts: datetime = Field(default_factory=utc_now)


class HelloEvent(_LiveEventBase):
    type: Literal["hello"] = "hello"
    station_id: str = Field(alias="stationId")


class PingEvent(_LiveEventBase):
    type: Literal["ping"] = "ping"


class TelemetryEvent(_LiveEventBase):
    type: Literal["telemetry"] = "telemetry"
    station_id: str = Field(alias="stationId")
    device_id: str | None = Field(default=None, alias="deviceId")
    status: str | None = None
    metrics: dict[str, float] = Field(default_factory=dict)


LiveEvent = Annotated[Union[HelloEvent, PingEvent, TelemetryEvent], Field(discriminator="type")]

_live_event_adapter: TypeAdapter[LiveEvent] = TypeAdapter(LiveEvent)


def encode_sse(event: HelloEvent | PingEvent | TelemetryEvent) -> bytes:
    """Frame one event as ``event: <type>`` / ``data: <json>`` followed by a blank line."""
    data = event.model_dump_json(by_alias=True)
    return f"event: {event.type}\ndata: {data}\n\n".encode("utf-8")


def decode_live_event(data: str | bytes, event_name: str | None = None) -> LiveEvent | None:
    """Parse one SSE ``data`` payload on the consuming side.

    Malformed JSON, unknown variants and a ``type`` that disagrees with the SSE
    event name yield ``None``; callers drop those and keep the channel open.
    """
    try:
        payload: Any = json.loads(data)
        event = _live_event_adapter.validate_python(payload)
    except (ValueError, ValidationError):
        logger.debug("live_event_dropped", event_name=event_name)
        return None
    if event_name is not None and event_name != event.type:
        logger.debug("live_event_dropped", event_name=event_name, type=event.type)
        return None
    return event
