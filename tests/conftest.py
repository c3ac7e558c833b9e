from __future__ import annotations

import pytest

from station_telemetry_service.main import create_app
from station_telemetry_service.settings import settings
from tests.utils import InMemoryTelemetryRepository, write_seed


@pytest.fixture
def repository():
    return InMemoryTelemetryRepository()


@pytest.fixture
def seed_dir(tmp_path):
    return write_seed(tmp_path / "seed")


@pytest.fixture
def app(repository, seed_dir, monkeypatch):
    monkeypatch.setattr(settings, "seed_dir", seed_dir)
    monkeypatch.setattr(settings, "live_keepalive_seconds", 0.05)
    monkeypatch.setattr(settings, "sim_interval_seconds", 0.0)
    return create_app(repository)


@pytest.fixture
async def service_client(aiohttp_client, app):
    return await aiohttp_client(app)
