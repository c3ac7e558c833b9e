"""Unit tests for the live channel registry."""
from __future__ import annotations

import asyncio

from station_telemetry_service.domain.events import HelloEvent, PingEvent, TelemetryEvent
from station_telemetry_service.services.live import LiveChannelRegistry, Subscriber


class _BrokenSubscriber(Subscriber):
    def offer(self, event):  # noqa: ANN001
        raise ConnectionResetError("peer vanished")


def _event(station_id: str = "S1") -> TelemetryEvent:
    return TelemetryEvent(station_id=station_id, metrics={"pass": 1.0})


async def _drain(subscriber: Subscriber) -> list:
    events = []
    while True:
        event = await subscriber.next_event(0.01)
        if event is None:
            return events
        events.append(event)


async def test_subscribe_sends_handshake_first():
    registry = LiveChannelRegistry()
    subscriber = registry.subscribe("S1")

    first = await subscriber.next_event(0.1)

    assert isinstance(first, HelloEvent)
    assert first.station_id == "S1"
    assert registry.subscriber_count("S1") == 1


async def test_publish_reaches_only_matching_station():
    registry = LiveChannelRegistry()
    a = registry.subscribe("S1")
    b = registry.subscribe("S1")
    other = registry.subscribe("S2")

    delivered = registry.publish("S1", _event())

    assert delivered == 2
    assert [type(e) for e in await _drain(a)] == [HelloEvent, TelemetryEvent]
    assert [type(e) for e in await _drain(b)] == [HelloEvent, TelemetryEvent]
    assert [type(e) for e in await _drain(other)] == [HelloEvent]


async def test_failing_subscriber_does_not_block_others():
    registry = LiveChannelRegistry()
    broken = _BrokenSubscriber("S1", queue_size=10)
    registry._channels.setdefault("S1", set()).add(broken)
    healthy = registry.subscribe("S1")

    delivered = registry.publish("S1", _event())

    assert delivered == 1
    assert [type(e) for e in await _drain(healthy)] == [HelloEvent, TelemetryEvent]
    # the dead channel stays until its own close signal unsubscribes it
    assert registry.subscriber_count("S1") == 2


async def test_full_backlog_drops_for_that_subscriber_only():
    registry = LiveChannelRegistry(queue_size=2)
    slow = registry.subscribe("S1")  # hello occupies one slot
    registry.publish("S1", _event())
    fast = registry.subscribe("S1")

    delivered = registry.publish("S1", _event())

    assert delivered == 1
    assert slow.pending == 2
    assert fast.pending == 2


async def test_unsubscribe_removes_empty_station():
    registry = LiveChannelRegistry()
    a = registry.subscribe("S1")
    b = registry.subscribe("S1")

    registry.unsubscribe(a)
    assert registry.subscriber_count("S1") == 1
    assert registry.watched_stations() == 1

    registry.unsubscribe(b)
    assert registry.subscriber_count("S1") == 0
    assert registry.watched_stations() == 0
    assert registry.publish("S1", _event()) == 0


async def test_unsubscribe_twice_is_harmless():
    registry = LiveChannelRegistry()
    subscriber = registry.subscribe("S1")
    registry.unsubscribe(subscriber)
    registry.unsubscribe(subscriber)
    assert registry.watched_stations() == 0


async def test_next_event_times_out_when_idle():
    subscriber = Subscriber("S1", queue_size=1)
    started = asyncio.get_running_loop().time()
    assert await subscriber.next_event(0.02) is None
    assert asyncio.get_running_loop().time() - started >= 0.015


async def test_ping_is_a_distinct_variant():
    assert PingEvent().type == "ping"
    assert HelloEvent(station_id="S1").type == "hello"
