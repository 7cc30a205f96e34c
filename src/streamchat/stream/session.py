"""One streamed request/response cycle.

    Idle → Sending → Streaming → {Completed, Errored}

The session issues the request, drives the decoder and classifier, keeps the
authoritative :class:`StreamAccumulator`, and reports exactly one terminal
outcome through ``on_complete`` or ``on_error``.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import httpx

from streamchat.config import ChatConfig
from streamchat.errors import (
    ChatStreamError,
    ServerError,
    StreamCallbackError,
    StreamCancelledError,
    StreamTimeoutError,
    TransportError,
)
from streamchat.llm.client import AsyncChatClient, build_payload
from streamchat.stream.classifier import (
    DeltaClassifier,
    DeltaEvent,
    DeltaKind,
    StreamAccumulator,
)
from streamchat.stream.decoder import iter_frames
from streamchat.types import ConversationMessage, ToolCallRequest

_logger = logging.getLogger(__name__)

# Sync or async callable
Callback = Callable[..., Any]


class SessionState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"


@dataclass
class StreamCallbacks:
    """Caller hooks.  Each may be sync or async; all are optional."""

    on_content: Callback | None = None  # (text)
    on_reasoning: Callback | None = None  # (text)
    on_tool_call: Callback | None = None  # (ToolCallRequest)
    on_complete: Callback | None = None  # (StreamResult)
    on_error: Callback | None = None  # (ChatStreamError)


@dataclass
class StreamResult:
    """Snapshot of a finished session."""

    state: SessionState
    content: str = ""
    reasoning_segments: list[str] = field(default_factory=list)
    tool_call: ToolCallRequest | None = None
    error: ChatStreamError | None = None

    @property
    def ok(self) -> bool:
        return self.state == SessionState.COMPLETED

    @property
    def reasoning(self) -> str:
        return "".join(self.reasoning_segments)


async def _invoke(callback: Callback | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class StreamSession:
    """Single-use driver for one streamed completion.

    Parameters
    ----------
    client:
        HTTP transport.
    config:
        Supplies the system prompt, sampling parameters and the reasoning
        region delimiters.
    messages:
        Conversation history to send.  Copied; the session keeps no
        reference to the caller's list.
    tools:
        OpenAI function schemas attached to the request.
    callbacks:
        Per-channel and terminal hooks.
    """

    def __init__(
        self,
        client: AsyncChatClient,
        config: ChatConfig,
        messages: Sequence[ConversationMessage],
        tools: list[dict[str, Any]] | None = None,
        callbacks: StreamCallbacks | None = None,
    ) -> None:
        self._client = client
        self._config = config
        self._messages = list(messages)
        self._tools = tools
        self._callbacks = callbacks or StreamCallbacks()
        self._acc = StreamAccumulator()
        self._classifier = DeltaClassifier(
            self._acc,
            reasoning_open=config.reasoning_open,
            reasoning_close=config.reasoning_close,
        )
        self._state = SessionState.IDLE
        self._error: ChatStreamError | None = None
        self._task: asyncio.Task[None] | None = None
        self._cancel_requested = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> StreamResult:
        return StreamResult(
            state=self._state,
            content=self._acc.content,
            reasoning_segments=list(self._acc.reasoning_segments),
            tool_call=self._acc.pending_tool_call,
            error=self._error,
        )

    @property
    def is_terminal(self) -> bool:
        return self._state in (SessionState.COMPLETED, SessionState.ERRORED)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self) -> StreamResult:
        """Send the request and stream until a terminal state."""
        if self._state != SessionState.IDLE:
            raise RuntimeError("StreamSession can only be run once")
        if self._cancel_requested:
            await self._fail(StreamCancelledError())
            return self.result

        payload = build_payload(self._config, self._messages, self._tools)
        self._state = SessionState.SENDING

        self._task = asyncio.create_task(self._stream(payload))
        try:
            await self._task
        except asyncio.CancelledError:
            await self._fail(StreamCancelledError())
            if not self._cancel_requested:
                raise
        return self.result

    def cancel(self) -> None:
        """Abort the session; it ends ``ERRORED`` with a cancellation error."""
        if self.is_terminal:
            return
        self._cancel_requested = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _stream(self, payload: dict[str, Any]) -> None:
        url = self._client.url
        try:
            async with self._client.stream(payload) as resp:
                if not resp.is_success:
                    body = (await resp.aread()).decode(errors="replace")
                    _logger.warning("Chat service returned %d: %s", resp.status_code, body[:200])
                    await self._fail(ServerError(resp.status_code, body))
                    return

                self._state = SessionState.STREAMING
                async with aclosing(iter_frames(resp.aiter_bytes())) as frames:
                    async for frame in frames:
                        if self._cancel_requested:
                            break
                        event = self._classifier.classify(frame)
                        if event is None:
                            continue
                        if event.kind == DeltaKind.COMPLETE:
                            break
                        await self._dispatch(event)
        except StreamCallbackError as e:
            await self._fail(e)
            return
        except httpx.ReadTimeout as e:
            _logger.warning("Read timeout from %s: %s", url, e)
            await self._fail(StreamTimeoutError(url, "read timeout"))
            return
        except httpx.HTTPError as e:
            _logger.warning("Transport failure talking to %s: %s", url, e)
            await self._fail(TransportError(url, f"{type(e).__name__}: {e}"))
            return

        if self._cancel_requested:
            await self._fail(StreamCancelledError())
            return
        await self._complete()

    async def _dispatch(self, event: DeltaEvent) -> None:
        cb = self._callbacks
        if event.kind == DeltaKind.TOOL_CALL:
            if self._acc.pending_tool_call is not None:
                _logger.info("Ignoring extra tool call %s", event.tool_call)
                return
            self._acc.apply(event)
            await self._notify("on_tool_call", cb.on_tool_call, event.tool_call)
            return

        self._acc.apply(event)
        if event.kind == DeltaKind.CONTENT:
            await self._notify("on_content", cb.on_content, event.text)
        elif event.kind == DeltaKind.REASONING:
            await self._notify("on_reasoning", cb.on_reasoning, event.text)

    async def _notify(self, name: str, callback: Callback | None, arg: Any) -> None:
        try:
            await _invoke(callback, arg)
        except Exception as e:
            _logger.exception("Stream callback %s raised", name)
            raise StreamCallbackError(name, f"{type(e).__name__}: {e}") from e

    async def _terminal(self, name: str, callback: Callback | None, arg: Any) -> None:
        # State is already terminal; a failing hook must not undo that.
        try:
            await _invoke(callback, arg)
        except Exception:
            _logger.exception("Stream callback %s raised", name)

    async def _complete(self) -> None:
        if self.is_terminal:
            return
        self._state = SessionState.COMPLETED
        _logger.debug(
            "Stream completed (%d chars, tool_call=%s)",
            len(self._acc.content),
            self._acc.pending_tool_call is not None,
        )
        await self._terminal("on_complete", self._callbacks.on_complete, self.result)

    async def _fail(self, error: ChatStreamError) -> None:
        if self.is_terminal:
            return
        self._state = SessionState.ERRORED
        self._error = error
        await self._terminal("on_error", self._callbacks.on_error, error)
