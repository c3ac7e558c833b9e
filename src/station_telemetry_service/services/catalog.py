"""Static station/device catalog loaded once from JSON seed files."""
from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any

import structlog
from pydantic import TypeAdapter

from station_telemetry_service.core.exceptions import NotFoundError
from station_telemetry_service.domain.models import Device, InventoryEntry, Station

logger = structlog.get_logger(__name__)

STATIONS_FILE = "stations.json"
DEVICES_FILE = "devices.json"

_stations_adapter: TypeAdapter[list[Station]] = TypeAdapter(list[Station])
_devices_adapter: TypeAdapter[list[Device]] = TypeAdapter(list[Device])


def _read_seed(path: Path) -> list[Any]:
    if not path.exists():
        logger.warning("catalog_seed_missing", path=str(path))
        return []
    # utf-8-sig strips a leading BOM if the file has one
    data = json.loads(path.read_text(encoding="utf-8-sig").strip() or "[]")
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array")
    return data


class StationCatalog:
    """Read-only view over stations and their devices."""

    def __init__(self, stations: list[Station], devices: list[Device]) -> None:
        self._stations = sorted(stations, key=lambda s: s.name)
        self._devices = sorted(devices, key=lambda d: d.id)
        self._devices_by_id = {device.id: device for device in self._devices}

    @classmethod
    def load(cls, seed_dir: Path) -> "StationCatalog":
        stations = _stations_adapter.validate_python(_read_seed(seed_dir / STATIONS_FILE))
        devices = _devices_adapter.validate_python(_read_seed(seed_dir / DEVICES_FILE))
        logger.info("catalog_loaded", stations=len(stations), devices=len(devices))
        return cls(stations, devices)

    def stations(self) -> list[Station]:
        return list(self._stations)

    def devices(self, station_id: str | None = None) -> list[Device]:
        if station_id is None:
            return list(self._devices)
        return [device for device in self._devices if device.station_id == station_id]

    def device(self, device_id: str) -> Device:
        device = self._devices_by_id.get(device_id)
        if device is None:
            raise NotFoundError("Device not found")
        return device

    def inventory(self) -> list[InventoryEntry]:
        """Device counts per type, most common first (ties by type name)."""
        counts = Counter(device.type for device in self._devices)
        ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return [InventoryEntry(type=device_type, count=count) for device_type, count in ordered]
