"""Bucketed telemetry history queries."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import structlog

from station_telemetry_service.domain.models import HistorySeries, utc_now
from station_telemetry_service.repositories.telemetry import TelemetryRepository
from station_telemetry_service.services.bucketing import (
    clamp_bucket_seconds,
    clamp_lookback_minutes,
    fold_into_buckets,
)

logger = structlog.get_logger(__name__)


class TelemetryHistoryService:
    def __init__(
        self,
        repository: TelemetryRepository,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._clock = clock

    async def history(self, station_id: str, *, minutes: int, bucket_seconds: int) -> HistorySeries:
        """Aggregate ``[now - minutes, now]`` into ``bucket_seconds`` wide buckets.

        Out-of-range arguments are clamped rather than rejected.
        """
        minutes = clamp_lookback_minutes(minutes)
        bucket_seconds = clamp_bucket_seconds(bucket_seconds)
        end = self._clock()
        start = end - timedelta(minutes=minutes)

        samples = await self._repository.list_since(station_id, start)
        points = fold_into_buckets(samples, bucket_seconds)
        logger.debug(
            "telemetry_history_read",
            station_id=station_id,
            minutes=minutes,
            bucket_seconds=bucket_seconds,
            samples=len(samples),
            points=len(points),
        )
        return HistorySeries(
            station_id=station_id,
            start=start,
            end=end,
            bucket_seconds=bucket_seconds,
            points=points,
        )
