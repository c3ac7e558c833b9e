"""Pydantic DTOs for telemetry ingest."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from station_telemetry_service.domain.models import as_utc

# Envelope fields; never treated as metric names by the flat-mapping parser.
RESERVED_FIELDS = frozenset({"stationId", "deviceId", "time", "ts", "items", "key", "value"})


class TelemetrySubmissionDTO(BaseModel):
    """One telemetry submission addressed to a station.

    Metric observations arrive in one of three shapes (see ``services.parsing``):
    an ``items`` list, a single top-level ``key``/``value`` pair, or any number of
    extra ``<metric>: <number>`` fields kept in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, str_strip_whitespace=True)

    station_id: str = Field(alias="stationId", min_length=1)
    device_id: str | None = Field(default=None, alias="deviceId")
    time: datetime | None = Field(default=None, validation_alias=AliasChoices("time", "ts"))

    items: list[Any] | None = None
    key: str | None = None
    value: Any = None

    @field_validator("time")
    @classmethod
    def _time_as_utc(cls, value: datetime | None) -> datetime | None:
        # Naive envelope times are UTC, like item times.
        return as_utc(value) if value is not None else None

    @property
    def metrics(self) -> dict[str, Any]:
        """Extra top-level fields, minus any reserved envelope names."""
        extra = self.model_extra or {}
        return {name: raw for name, raw in extra.items() if name not in RESERVED_FIELDS}
