"""Tests for the CLI turn runner and display."""

from __future__ import annotations

import asyncio
import json
import signal

import httpx
import pytest
from rich.console import Console

from streamchat.cli import StreamingDisplay, _submit
from streamchat.config import ChatConfig
from streamchat.core.orchestrator import ToolCallOrchestrator
from streamchat.events.bus import EventBus
from streamchat.llm.client import AsyncChatClient
from streamchat.types import DisplayEvent, EventType, Role


class HangingStream(httpx.AsyncByteStream):
    def __init__(self, release: asyncio.Event) -> None:
        self._release = release

    async def __aiter__(self):
        yield b'data: {"choices":[{"delta":{"content":"par"}}]}\n'
        await self._release.wait()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_interrupt_cancels_turn(self, config: ChatConfig, monkeypatch):
        never = asyncio.Event()

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=HangingStream(never))

        bus = EventBus()
        events: list[DisplayEvent] = []
        bus.subscribe("*", events.append)
        client = AsyncChatClient(config, transport=httpx.MockTransport(handler))
        orch = ToolCallOrchestrator(config, client=client, event_bus=bus)

        loop = asyncio.get_running_loop()
        handlers: dict[int, object] = {}
        monkeypatch.setattr(loop, "add_signal_handler", lambda sig, cb: handlers.__setitem__(sig, cb))
        monkeypatch.setattr(loop, "remove_signal_handler", lambda sig: handlers.pop(sig, None))

        turn = asyncio.create_task(_submit(orch, "hi"))
        while not any(e.type == EventType.CONTENT_DELTA for e in events):
            await asyncio.sleep(0)

        handlers[signal.SIGINT]()
        await turn
        await client.close()

        errors = [e for e in events if e.type == EventType.STREAM_ERROR]
        assert [e.data["kind"] for e in errors] == ["cancelled"]
        assert [m.role for m in orch.history] == [Role.USER]
        assert not orch.busy
        assert handlers == {}


class TestStreamingDisplay:
    def test_renders_deltas_and_tool_result(self):
        con = Console(record=True, width=100, color_system=None)
        display = StreamingDisplay(con)
        display.handle(DisplayEvent(type=EventType.REASONING_DELTA, data={"text": "hmm"}))
        display.handle(DisplayEvent(type=EventType.CONTENT_DELTA, data={"text": "Hel"}))
        display.handle(DisplayEvent(type=EventType.CONTENT_DELTA, data={"text": "lo"}))
        display.handle(DisplayEvent(type=EventType.TOOL_RESULT, data={
            "name": "tool_read_file", "status": "SUCCESS", "data": {"file_contents": "x"},
        }))
        display.handle(DisplayEvent(type=EventType.STREAM_ERROR, data={
            "kind": "server", "message": "HTTP 500: boom",
        }))

        out = con.export_text()
        assert "thinking: hmm" in out
        assert "Hello" in out
        assert "tool_read_file" in out
        assert json.dumps({"file_contents": "x"}, indent=2).splitlines()[1].strip() in out
        assert "HTTP 500: boom" in out
