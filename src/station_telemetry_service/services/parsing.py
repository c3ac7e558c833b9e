"""Normalization of telemetry submissions into observations.

A submission may carry its metrics in one of three shapes. Each shape has a
strategy that either produces a non-empty list of observations or declines
(returns an empty list); strategies are tried in ``STRATEGIES`` order and the
first non-empty result wins.
"""
from __future__ import annotations

import math
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError

from station_telemetry_service.domain.dto import TelemetrySubmissionDTO
from station_telemetry_service.domain.models import Observation, as_utc

_datetime_adapter: TypeAdapter[datetime] = TypeAdapter(datetime)


def coerce_value(raw: Any) -> float | None:
    """Coerce a metric value to a finite float, or ``None`` when it is not numeric."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_time(raw: Any) -> datetime | None:
    """Parse ISO-8601 strings or epoch numbers (seconds or milliseconds) as UTC."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return as_utc(_datetime_adapter.validate_python(raw))
    except ValidationError:
        return None


def _observation(key: Any, raw_value: Any, raw_time: Any, default_time: datetime) -> Observation | None:
    if not isinstance(key, str) or not key.strip():
        return None
    value = coerce_value(raw_value)
    if value is None:
        return None
    if raw_time is None:
        time = default_time
    else:
        parsed = parse_time(raw_time)
        if parsed is None:
            return None
        time = parsed
    return Observation(key=key.strip(), value=value, time=time)


def from_items(dto: TelemetrySubmissionDTO, default_time: datetime) -> list[Observation]:
    """``{"items": [{"key": ..., "value": ..., "time"?: ...}, ...]}``"""
    if not dto.items:
        return []
    observations: list[Observation] = []
    for item in dto.items:
        if not isinstance(item, dict):
            continue
        observation = _observation(item.get("key"), item.get("value"), item.get("time"), default_time)
        if observation is not None:
            observations.append(observation)
    return observations


def from_pair(dto: TelemetrySubmissionDTO, default_time: datetime) -> list[Observation]:
    """``{"key": ..., "value": ...}`` at the top level; ``time`` is the envelope time."""
    if dto.key is None:
        return []
    observation = _observation(dto.key, dto.value, None, default_time)
    return [observation] if observation is not None else []


def from_flat_mapping(dto: TelemetrySubmissionDTO, default_time: datetime) -> list[Observation]:
    """``{"pass": 5, "fail": 1, ...}``; non-numeric fields such as ``status`` are skipped."""
    observations: list[Observation] = []
    for name, raw in dto.metrics.items():
        observation = _observation(name, raw, None, default_time)
        if observation is not None:
            observations.append(observation)
    return observations


ParseStrategy = Callable[[TelemetrySubmissionDTO, datetime], list[Observation]]

STRATEGIES: tuple[ParseStrategy, ...] = (from_items, from_pair, from_flat_mapping)


def parse_observations(dto: TelemetrySubmissionDTO, default_time: datetime) -> list[Observation]:
    """Run the strategies in priority order; an empty list means nothing was usable."""
    for strategy in STRATEGIES:
        observations = strategy(dto, default_time)
        if observations:
            return observations
    return []
