"""Per-station live channel registry.

Subscriptions live only in process memory: the registry starts empty, grows on
``subscribe``, shrinks on ``unsubscribe`` and is never persisted. Clients are
expected to reconnect after a restart.

The registry is mutated only from the event loop thread, so no lock is taken.
``publish`` never awaits: each subscriber owns a bounded queue that its SSE
handler drains, and a full or broken queue only affects that subscriber.
"""
from __future__ import annotations

import asyncio

import structlog

from station_telemetry_service.domain.events import HelloEvent, LiveEvent

logger = structlog.get_logger(__name__)


class Subscriber:
    """One open push channel bound to a single station."""

    def __init__(self, station_id: str, *, queue_size: int) -> None:
        self.station_id = station_id
        self._queue: asyncio.Queue[LiveEvent] = asyncio.Queue(maxsize=queue_size)

    def offer(self, event: LiveEvent) -> None:
        """Enqueue without waiting; raises ``asyncio.QueueFull`` when the backlog is full."""
        self._queue.put_nowait(event)

    async def next_event(self, timeout: float) -> LiveEvent | None:
        """Wait up to ``timeout`` seconds for the next event; ``None`` means idle."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout)
        except asyncio.TimeoutError:
            return None

    @property
    def pending(self) -> int:
        return self._queue.qsize()


class LiveChannelRegistry:
    """Maps station id to the set of subscribers currently watching it."""

    def __init__(self, *, queue_size: int = 100) -> None:
        self._queue_size = queue_size
        self._channels: dict[str, set[Subscriber]] = {}

    def subscribe(self, station_id: str) -> Subscriber:
        subscriber = Subscriber(station_id, queue_size=self._queue_size)
        self._channels.setdefault(station_id, set()).add(subscriber)
        subscriber.offer(HelloEvent(station_id=station_id))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> None:
        channels = self._channels.get(subscriber.station_id)
        if channels is None:
            return
        channels.discard(subscriber)
        if not channels:
            del self._channels[subscriber.station_id]

    def publish(self, station_id: str, event: LiveEvent) -> int:
        """Offer ``event`` to every subscriber of ``station_id``; returns how many accepted it."""
        channels = self._channels.get(station_id)
        if not channels:
            return 0
        delivered = 0
        # Copy: a failing subscriber may be unsubscribed while we iterate.
        for subscriber in list(channels):
            try:
                subscriber.offer(event)
            except Exception as exc:
                logger.debug(
                    "live_event_not_delivered",
                    station_id=station_id,
                    event_type=event.type,
                    error=type(exc).__name__,
                )
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, station_id: str) -> int:
        return len(self._channels.get(station_id, ()))

    def watched_stations(self) -> int:
        return len(self._channels)
