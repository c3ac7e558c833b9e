from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

from aiohttp import ClientResponse

from station_telemetry_service.core.exceptions import RepositoryError
from station_telemetry_service.domain.models import Sample

STATIONS = [
    {"id": "S1", "name": "Filler", "line": "L1"},
    {"id": "S2", "name": "Capper", "line": "L1", "area": "Liquids"},
    {"id": "S3", "name": "Boxer", "line": "L2"},
]

DEVICES = [
    {"id": "D3", "station_id": "S2", "type": "Sensor", "tags": ["torque"]},
    {"id": "D1", "station_id": "S1", "type": "PLC", "vendor": "Siemens"},
    {"id": "D2", "station_id": "S1", "type": "Sensor"},
    {"id": "D4", "station_id": "S3", "type": "Camera"},
    {"id": "D5", "station_id": "S3", "type": "Sensor"},
]


def write_seed(seed_dir: Path, stations: list[dict[str, Any]] = STATIONS, devices: list[dict[str, Any]] = DEVICES) -> Path:
    seed_dir.mkdir(parents=True, exist_ok=True)
    (seed_dir / "stations.json").write_text(json.dumps(stations), encoding="utf-8")
    (seed_dir / "devices.json").write_text(json.dumps(devices), encoding="utf-8")
    return seed_dir


class InMemoryTelemetryRepository:
    """Keeps rows in insertion order, like ``ORDER BY time, id`` on the real table."""

    def __init__(self) -> None:
        self.rows: list[Sample] = []
        self.insert_calls = 0

    async def insert_samples(self, samples: Sequence[Sample]) -> int:
        self.insert_calls += 1
        self.rows.extend(samples)
        return len(samples)

    async def list_since(self, station_id: str, since: datetime) -> list[Sample]:
        return [row for row in self.rows if row.station_id == station_id and row.time >= since]


class FailingTelemetryRepository:
    async def insert_samples(self, samples: Sequence[Sample]) -> int:
        raise RepositoryError("ConnectionRefusedError: connection refused by 10.0.0.5:5432")

    async def list_since(self, station_id: str, since: datetime) -> list[Sample]:
        raise RepositoryError("ConnectionRefusedError: connection refused by 10.0.0.5:5432")


async def read_sse_event(
    resp: ClientResponse,
    *,
    skip: tuple[str, ...] = ("ping",),
    timeout: float = 2.0,
) -> tuple[str, dict[str, Any]]:
    """Read frames until one whose event name is not in ``skip``."""

    async def _read_frame() -> tuple[str, str]:
        name, data = "message", ""
        while True:
            line = (await resp.content.readline()).decode("utf-8")
            if line == "":
                raise ConnectionError("stream closed")
            line = line.rstrip("\n")
            if line == "":
                return name, data
            field, _, value = line.partition(": ")
            if field == "event":
                name = value
            elif field == "data":
                data = value

    while True:
        name, data = await asyncio.wait_for(_read_frame(), timeout)
        if name in skip:
            continue
        return name, json.loads(data)
