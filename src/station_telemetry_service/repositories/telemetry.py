"""Telemetry sample repository backed by asyncpg."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from asyncpg import Pool, Record  # type: ignore[import-untyped]

from station_telemetry_service.domain.models import Sample
from station_telemetry_service.repositories.base import BaseRepository


class TelemetryRepository(BaseRepository):
    """Append-only access to the ``telemetry`` table."""

    def __init__(self, pool: Pool):
        super().__init__(pool)

    @staticmethod
    def _to_model(record: Record) -> Sample:
        value = record["v"]
        return Sample(
            time=record["time"],
            station_id=record["station_id"],
            device_id=record["device_id"],
            key=record["k"],
            value=float(value) if value is not None else None,
        )

    async def insert_samples(self, samples: Sequence[Sample]) -> int:
        """Append all samples in one transaction; returns the number of rows written."""
        if not samples:
            return 0
        rows = [
            (sample.time, sample.station_id, sample.device_id, sample.key, sample.value)
            for sample in samples
        ]
        await self._executemany(
            """
            INSERT INTO telemetry (time, station_id, device_id, k, v)
            VALUES ($1, $2, $3, $4, $5)
            """,
            rows,
        )
        return len(rows)

    async def list_since(self, station_id: str, since: datetime) -> list[Sample]:
        # id breaks ties between rows written for the same timestamp
        records = await self._fetch(
            """
            SELECT time, station_id, device_id, k, v
            FROM telemetry
            WHERE station_id = $1
              AND time >= $2
            ORDER BY time ASC, id ASC
            """,
            station_id,
            since,
        )
        return [self._to_model(record) for record in records]
