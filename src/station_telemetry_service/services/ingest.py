"""Telemetry ingestion: validate, persist, then publish a live snapshot."""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import structlog

from station_telemetry_service.core.exceptions import InvalidSubmissionError
from station_telemetry_service.domain.dto import TelemetrySubmissionDTO
from station_telemetry_service.domain.events import (
    SNAPSHOT_METRIC_KEYS,
    SNAPSHOT_STATUS_KEY,
    TelemetryEvent,
)
from station_telemetry_service.domain.models import Observation, Sample, utc_now
from station_telemetry_service.repositories.telemetry import TelemetryRepository
from station_telemetry_service.services.live import LiveChannelRegistry
from station_telemetry_service.services.parsing import parse_observations

logger = structlog.get_logger(__name__)


class SnapshotState:
    """Latest known dashboard values per station, kept in memory only."""

    def __init__(self) -> None:
        self._metrics: dict[str, dict[str, float]] = {}
        self._status: dict[str, str] = {}

    def merge(
        self,
        station_id: str,
        observations: list[Observation],
        status: str | None,
    ) -> tuple[dict[str, float], str | None]:
        metrics = self._metrics.setdefault(station_id, {})
        # Later observations win within one batch as well.
        for observation in sorted(observations, key=lambda o: o.time):
            if observation.key in SNAPSHOT_METRIC_KEYS:
                metrics[observation.key] = observation.value
        if status:
            self._status[station_id] = status
        return dict(metrics), self._status.get(station_id)


class TelemetryIngestService:
    """Single writer path into the telemetry store and single snapshot publisher."""

    def __init__(
        self,
        repository: TelemetryRepository,
        registry: LiveChannelRegistry,
        *,
        snapshots: SnapshotState | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repository = repository
        self._registry = registry
        self._snapshots = snapshots if snapshots is not None else SnapshotState()
        self._clock = clock

    async def ingest(self, dto: TelemetrySubmissionDTO) -> int:
        """Persist the accepted observations and return how many were written.

        Raises ``InvalidSubmissionError`` before any write when nothing usable
        was sent; ``RepositoryError`` propagates from the store.
        """
        default_time = dto.time if dto.time is not None else self._clock()
        observations = parse_observations(dto, default_time)
        if not observations:
            raise InvalidSubmissionError(
                "no valid observations",
                stationId=dto.station_id,
            )

        samples = [
            Sample(
                time=observation.time,
                station_id=dto.station_id,
                device_id=dto.device_id,
                key=observation.key,
                value=observation.value,
            )
            for observation in observations
        ]
        accepted = await self._repository.insert_samples(samples)

        delivered = self._publish_snapshot(dto, observations)
        logger.info(
            "telemetry_ingested",
            station_id=dto.station_id,
            device_id=dto.device_id,
            accepted=accepted,
            delivered=delivered,
        )
        return accepted

    def _publish_snapshot(self, dto: TelemetrySubmissionDTO, observations: list[Observation]) -> int:
        raw_status = dto.metrics.get(SNAPSHOT_STATUS_KEY)
        status = raw_status.strip() if isinstance(raw_status, str) else None
        metrics, latest_status = self._snapshots.merge(dto.station_id, observations, status)
        event = TelemetryEvent(
            station_id=dto.station_id,
            device_id=dto.device_id,
            ts=max(observation.time for observation in observations),
            status=latest_status,
            metrics=metrics,
        )
        return self._registry.publish(dto.station_id, event)
