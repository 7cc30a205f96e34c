"""Tests for the async EventBus."""

import pytest

from streamchat.events.bus import EventBus
from streamchat.types import DisplayEvent, EventType


@pytest.fixture
def bus():
    return EventBus()


class TestSubscribeAndEmit:
    @pytest.mark.asyncio
    async def test_async_handler(self, bus: EventBus):
        received = []

        async def handler(event: DisplayEvent):
            received.append(event)

        bus.subscribe(EventType.CONTENT_DELTA, handler)
        ev = DisplayEvent(type=EventType.CONTENT_DELTA, data={"text": "hi"})
        await bus.emit(ev)

        assert len(received) == 1
        assert received[0] is ev

    @pytest.mark.asyncio
    async def test_sync_handler(self, bus: EventBus):
        received = []
        bus.subscribe(EventType.MESSAGE_APPENDED, received.append)
        await bus.emit(DisplayEvent(type=EventType.MESSAGE_APPENDED))
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_no_cross_delivery(self, bus: EventBus):
        received = []
        bus.subscribe(EventType.CONTENT_DELTA, received.append)
        await bus.emit(DisplayEvent(type=EventType.REASONING_DELTA))
        assert received == []

    @pytest.mark.asyncio
    async def test_arrival_order(self, bus: EventBus):
        received = []
        bus.subscribe(EventType.CONTENT_DELTA, lambda e: received.append(e.data["text"]))
        for text in ["a", "b", "c"]:
            await bus.emit(DisplayEvent(type=EventType.CONTENT_DELTA, data={"text": text}))
        assert received == ["a", "b", "c"]


class TestWildcard:
    @pytest.mark.asyncio
    async def test_wildcard_receives_all(self, bus: EventBus):
        received = []
        bus.subscribe("*", lambda e: received.append(e.type))
        await bus.emit(DisplayEvent(type=EventType.CONTENT_DELTA))
        await bus.emit(DisplayEvent(type=EventType.STREAM_ERROR))
        await bus.emit(DisplayEvent(type=EventType.STREAM_COMPLETE))

        assert received == [
            EventType.CONTENT_DELTA,
            EventType.STREAM_ERROR,
            EventType.STREAM_COMPLETE,
        ]


class TestUnsubscribe:
    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus: EventBus):
        received = []
        bus.subscribe(EventType.STREAM_COMPLETE, received.append)
        await bus.emit(DisplayEvent(type=EventType.STREAM_COMPLETE))
        bus.unsubscribe(EventType.STREAM_COMPLETE, received.append)
        await bus.emit(DisplayEvent(type=EventType.STREAM_COMPLETE))
        assert len(received) == 1

    def test_unsubscribe_nonexistent(self, bus: EventBus):
        # Should not raise
        bus.unsubscribe(EventType.STREAM_COMPLETE, print)


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_limit(self):
        bus = EventBus(max_history=5)
        for i in range(10):
            await bus.emit(DisplayEvent(type=EventType.CONTENT_DELTA, data={"i": i}))
        assert len(bus.history) == 5
        assert bus.history[0].data["i"] == 5

    @pytest.mark.asyncio
    async def test_clear(self, bus: EventBus):
        bus.subscribe(EventType.CONTENT_DELTA, print)
        await bus.emit(DisplayEvent(type=EventType.CONTENT_DELTA))
        bus.clear()
        assert bus.history == []
        assert bus._handlers == {}


class TestErrorHandling:
    @pytest.mark.asyncio
    async def test_handler_exception_does_not_propagate(self, bus: EventBus):
        def bad_handler(event: DisplayEvent):
            raise ValueError("boom")

        received = []
        bus.subscribe(EventType.STREAM_ERROR, bad_handler)
        bus.subscribe(EventType.STREAM_ERROR, received.append)

        await bus.emit(DisplayEvent(type=EventType.STREAM_ERROR))
        assert len(received) == 1


class TestOrdering:
    @pytest.mark.asyncio
    async def test_specific_before_wildcard(self, bus: EventBus):
        calls = []
        bus.subscribe("*", lambda e: calls.append("wildcard"))
        bus.subscribe(EventType.TOOL_RESULT, lambda e: calls.append("specific"))
        await bus.emit(DisplayEvent(type=EventType.TOOL_RESULT))
        assert calls == ["specific", "wildcard"]
