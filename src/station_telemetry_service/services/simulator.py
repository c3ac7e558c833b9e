"""Demo traffic generator.

Produces a short random-walk sequence for one station and submits every step
through the regular ingestion path, so the samples are persisted and published
exactly like producer traffic.
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass

import structlog

from station_telemetry_service.domain.dto import TelemetrySubmissionDTO
from station_telemetry_service.services.ingest import TelemetryIngestService

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class _WalkState:
    speed: float = 50.0
    count: int = 100
    passed: int = 95
    failed: int = 1
    suspect: int = 1
    packed_fg: int = 3

    def step(self, rng: random.Random) -> None:
        # speed drifts both ways; counters only grow
        self.speed = max(0.0, self.speed + rng.uniform(-5.0, 5.0))
        produced = rng.randint(1, 3)
        self.count += produced
        bad = 1 if rng.random() < 0.1 else 0
        unsure = 1 if rng.random() < 0.05 else 0
        self.failed += bad
        self.suspect += unsure
        self.passed += max(0, produced - bad - unsure)
        self.packed_fg += rng.randint(0, 1)

    def as_payload(self, station_id: str) -> dict[str, object]:
        return {
            "stationId": station_id,
            "status": "RUNNING",
            "speed": round(self.speed, 1),
            "count": self.count,
            "pass": self.passed,
            "fail": self.failed,
            "suspect": self.suspect,
            "packedFg": self.packed_fg,
        }


class TelemetrySimulator:
    """Runs bounded simulations in background tasks owned by this object."""

    def __init__(
        self,
        ingest_service: TelemetryIngestService,
        *,
        iterations: int,
        interval_seconds: float,
        rng: random.Random | None = None,
    ) -> None:
        self._ingest_service = ingest_service
        self.iterations = iterations
        self._interval = interval_seconds
        self._rng = rng or random.Random()
        self._tasks: set[asyncio.Task[int]] = set()

    def start(self, station_id: str) -> asyncio.Task[int]:
        task = asyncio.create_task(self.run(station_id), name=f"simulator:{station_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, station_id: str) -> int:
        """Submit ``iterations`` steps; returns how many were persisted."""
        state = _WalkState()
        completed = 0
        logger.info("simulation_started", station_id=station_id, iterations=self.iterations)
        for i in range(self.iterations):
            if i:
                await asyncio.sleep(self._interval)
            state.step(self._rng)
            dto = TelemetrySubmissionDTO.model_validate(state.as_payload(station_id))
            try:
                await self._ingest_service.ingest(dto)
            except Exception:
                logger.exception("simulation_step_failed", station_id=station_id, step=i)
                continue
            completed += 1
        logger.info("simulation_finished", station_id=station_id, completed=completed)
        return completed

    async def close(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
