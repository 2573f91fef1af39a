# tests/test_events.py

import asyncio
import json

import pytest

from storefront.services.events import EventBroadcaster, format_sse


def parse_frame(frame: str) -> tuple[str, dict]:
    event_line, data_line = frame.strip().split("\n")
    return event_line.removeprefix("event: "), json.loads(data_line.removeprefix("data: "))


async def test_broadcast_reaches_every_client():
    events = EventBroadcaster()
    first, second = events.new_client_queue(), events.new_client_queue()
    events.add_client(first)
    events.add_client(second)

    delivered = events.broadcast("order-update", {"orderId": 1})

    assert delivered == 2
    for queue in (first, second):
        event = queue.get_nowait()
        assert event["type"] == "order-update"
        assert event["data"] == {"orderId": 1}
        assert event["timestamp"]


def test_unknown_event_type_is_rejected():
    events = EventBroadcaster()
    with pytest.raises(ValueError):
        events.broadcast("something-else", {})
    assert events.recent_events() == []


async def test_full_client_is_dropped():
    events = EventBroadcaster(queue_size=1)
    slow, fast = events.new_client_queue(), events.new_client_queue()
    events.add_client(slow)
    events.add_client(fast)

    events.broadcast("inventory-update", {"productId": 1})
    fast.get_nowait()
    delivered = events.broadcast("inventory-update", {"productId": 2})

    assert delivered == 1
    assert events.client_count == 1
    assert slow not in events.clients


def test_history_keeps_last_events_only():
    events = EventBroadcaster(history_size=100)
    for i in range(120):
        events.broadcast("heartbeat", {"n": i})

    assert len(events.history) == 100
    assert events.recent_events(3)[-1]["data"] == {"n": 119}
    assert events.recent_events(200)[0]["data"] == {"n": 20}
    assert events.recent_events(0) == []


async def test_stream_starts_with_connected_then_live_events():
    events = EventBroadcaster()
    queue = events.new_client_queue()
    stream = events.stream(queue, heartbeat_seconds=5)

    event_type, payload = parse_frame(await stream.__anext__())
    assert event_type == "connected"
    assert events.client_count == 1

    events.broadcast("ui-section-update", {"sectionId": "hero"})
    event_type, payload = parse_frame(await stream.__anext__())
    assert event_type == "ui-section-update"
    assert payload["data"] == {"sectionId": "hero"}

    await stream.aclose()
    assert events.client_count == 0


async def test_stream_sends_heartbeat_when_idle():
    events = EventBroadcaster()
    stream = events.stream(events.new_client_queue(), heartbeat_seconds=0.01)

    await stream.__anext__()
    event_type, payload = parse_frame(await asyncio.wait_for(stream.__anext__(), timeout=1))

    assert event_type == "heartbeat"
    assert payload["data"] is None
    await stream.aclose()


def test_format_sse_frame():
    frame = format_sse({"type": "order-update", "data": {"status": "결제완료"}, "timestamp": "t"})

    assert frame.startswith("event: order-update\ndata: ")
    assert frame.endswith("\n\n")
    assert "결제완료" in frame
