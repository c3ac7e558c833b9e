"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    # Naive datetimes are treated as UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_rfc3339_z(dt: datetime) -> str:
    return as_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class Observation:
    """One normalized metric reading, before it is bound to a station."""

    key: str
    value: float
    time: datetime


@dataclass(frozen=True, slots=True)
class Sample:
    """One persisted (time, station, device?, key, value) telemetry row."""

    time: datetime
    station_id: str
    key: str
    value: float | None
    device_id: str | None = None


@dataclass(frozen=True, slots=True)
class BucketPoint:
    """Last non-null value per key inside one ``[start, start + width)`` window."""

    start: datetime
    values: dict[str, float] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {"ts": to_rfc3339_z(self.start), **self.values}


@dataclass(frozen=True, slots=True)
class HistorySeries:
    station_id: str
    start: datetime
    end: datetime
    bucket_seconds: int
    points: list[BucketPoint]

    def as_dict(self) -> dict[str, Any]:
        return {
            "stationId": self.station_id,
            "from": to_rfc3339_z(self.start),
            "to": to_rfc3339_z(self.end),
            "bucket": self.bucket_seconds,
            "points": [point.as_dict() for point in self.points],
        }


class Station(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    line: str
    pod: str | None = None
    area: str | None = None
    hmi_brand: str | None = None
    builder: str | None = None
    screen_url: str | None = None


class Device(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    station_id: str
    name: str | None = None
    type: str
    vendor: str | None = None
    model: str | None = None
    tags: list[str] = Field(default_factory=list)


class InventoryEntry(BaseModel):
    type: str
    count: int
