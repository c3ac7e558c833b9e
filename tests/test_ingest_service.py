"""Unit tests for the ingestion gateway."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from station_telemetry_service.core.exceptions import InvalidSubmissionError, RepositoryError
from station_telemetry_service.domain.dto import TelemetrySubmissionDTO
from station_telemetry_service.domain.events import HelloEvent, TelemetryEvent
from station_telemetry_service.services.ingest import TelemetryIngestService
from station_telemetry_service.services.live import LiveChannelRegistry
from tests.utils import FailingTelemetryRepository, InMemoryTelemetryRepository

NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _dto(**payload) -> TelemetrySubmissionDTO:
    return TelemetrySubmissionDTO.model_validate({"stationId": "S1", **payload})


@pytest.fixture
def registry():
    return LiveChannelRegistry()


@pytest.fixture
def service(repository, registry):
    return TelemetryIngestService(repository, registry, clock=lambda: NOW)


async def _published(subscriber) -> list[TelemetryEvent]:
    events = []
    while (event := await subscriber.next_event(0.01)) is not None:
        if not isinstance(event, HelloEvent):
            events.append(event)
    return events


async def test_flat_submission_persisted_and_published(service, repository, registry):
    subscriber = registry.subscribe("S1")

    accepted = await service.ingest(_dto(deviceId="D1", status="RUNNING", **{"pass": 5, "fail": 1}))

    assert accepted == 2
    assert sorted((r.key, r.value) for r in repository.rows) == [("fail", 1.0), ("pass", 5.0)]
    assert {r.device_id for r in repository.rows} == {"D1"}
    assert {r.time for r in repository.rows} == {NOW}
    [event] = await _published(subscriber)
    assert event.station_id == "S1"
    assert event.device_id == "D1"
    assert event.status == "RUNNING"
    assert event.metrics == {"pass": 5.0, "fail": 1.0}
    assert event.ts == NOW


async def test_envelope_time_is_default_for_observations(service, repository):
    await service.ingest(_dto(time="2026-01-01T11:00:00Z", speed=10))
    assert repository.rows[0].time == NOW - timedelta(hours=1)


async def test_status_is_not_persisted(service, repository):
    await service.ingest(_dto(status="STOPPED", speed=0))
    assert [r.key for r in repository.rows] == ["speed"]


async def test_snapshot_merges_across_submissions(service, registry):
    subscriber = registry.subscribe("S1")

    await service.ingest(_dto(status="RUNNING", speed=40))
    await service.ingest(_dto(count=7))

    first, second = await _published(subscriber)
    assert first.metrics == {"speed": 40.0}
    assert second.metrics == {"speed": 40.0, "count": 7.0}
    assert second.status == "RUNNING"


async def test_non_dashboard_keys_stored_but_not_in_snapshot(service, repository, registry):
    subscriber = registry.subscribe("S1")

    await service.ingest(_dto(temperature=21.5, speed=3))

    assert sorted(r.key for r in repository.rows) == ["speed", "temperature"]
    [event] = await _published(subscriber)
    assert event.metrics == {"speed": 3.0}


async def test_no_valid_observations_writes_and_publishes_nothing(service, repository, registry):
    subscriber = registry.subscribe("S1")

    with pytest.raises(InvalidSubmissionError) as exc_info:
        await service.ingest(_dto(status="RUNNING", speed="fast"))

    assert exc_info.value.detail == {"stationId": "S1"}
    assert repository.insert_calls == 0
    assert await _published(subscriber) == []


async def test_storage_failure_propagates_without_publish(registry):
    service = TelemetryIngestService(FailingTelemetryRepository(), registry, clock=lambda: NOW)
    subscriber = registry.subscribe("S1")

    with pytest.raises(RepositoryError):
        await service.ingest(_dto(speed=1))

    assert await _published(subscriber) == []


async def test_publish_without_subscribers_is_fine(service, repository):
    assert await service.ingest(_dto(key="speed", value=12)) == 1
    assert len(repository.rows) == 1
