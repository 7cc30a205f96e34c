"""Orchestrator: drives stream sessions through tool-call round-trips.

    user message → session → (tool call → dispatch → tool result → session)* → reply

The Orchestrator owns the canonical message history.  Sessions only see a
copy and report back through their result; every append goes through
``_append`` so eviction, stats and persistence follow each mutation.
"""

from __future__ import annotations

import logging
from typing import Any

from streamchat.config import ChatConfig
from streamchat.core.context import ContextWindowManager
from streamchat.errors import (
    ChatStreamError,
    ConversationBusyError,
    StreamCancelledError,
    ToolCallLimitError,
)
from streamchat.events.bus import EventBus
from streamchat.llm.client import AsyncChatClient
from streamchat.store import HistoryStore
from streamchat.stream.session import StreamCallbacks, StreamResult, StreamSession
from streamchat.tools.registry import ToolRegistry
from streamchat.types import (
    ConversationMessage,
    DisplayEvent,
    EventType,
    Role,
    TokenStats,
    ToolCallRequest,
)

_logger = logging.getLogger(__name__)


class ToolCallOrchestrator:
    """Async control loop for one conversation.

    Parameters
    ----------
    config:
        Connection, sampling and window settings.
    client:
        HTTP transport.  Created from *config* when omitted (and then closed
        by :meth:`close`).
    registry:
        Tools offered to the model and dispatched on request.
    event_bus:
        Display sink for deltas, appended messages, errors and stats.
    store:
        Optional persistence.  When given, history is loaded from it on
        construction and saved after every mutation.
    """

    def __init__(
        self,
        config: ChatConfig,
        client: AsyncChatClient | None = None,
        registry: ToolRegistry | None = None,
        event_bus: EventBus | None = None,
        store: HistoryStore | None = None,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or AsyncChatClient(config)
        self._registry = registry or ToolRegistry()
        self._event_bus = event_bus or EventBus()
        self._store = store
        self._window = ContextWindowManager(config.context_window)
        self._history: list[ConversationMessage] = (
            store.load(config.session_id) if store else []
        )
        self._busy = False
        self._cancelled = False
        self._session: StreamSession | None = None
        self._turn_reasoning: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def history(self) -> list[ConversationMessage]:
        """Return a copy of the message history."""
        return list(self._history)

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def token_stats(self) -> TokenStats:
        return self._window.stats(self._history, self._turn_reasoning)

    async def submit_user_message(self, text: str) -> ConversationMessage | None:
        """Run one user request to completion.

        Returns the final assistant message, or ``None`` when the turn
        errored or produced no content.  Raises
        :class:`ConversationBusyError` if a turn is already in progress.
        """
        if self._busy:
            raise ConversationBusyError()
        if not text.strip():
            return None
        return await self._run_turn(ConversationMessage(role=Role.USER, content=text))

    async def resume(self) -> ConversationMessage | None:
        """Continue a conversation whose last message is an unanswered tool result."""
        if self._busy:
            raise ConversationBusyError()
        if not self._history or self._history[-1].role != Role.TOOL:
            return None
        return await self._run_turn(None)

    def cancel(self) -> None:
        """Abort the in-flight session (if any) and stop the tool loop."""
        if not self._busy:
            return
        self._cancelled = True
        if self._session is not None:
            self._session.cancel()

    async def clear(self) -> None:
        """Drop all history, including the persisted copy."""
        if self._busy:
            raise ConversationBusyError()
        self._history.clear()
        if self._store is not None:
            self._store.clear(self.config.session_id)
        await self._emit(EventType.CONTEXT_STATS, {"stats": self.token_stats})

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------

    async def _run_turn(
        self, user_message: ConversationMessage | None,
    ) -> ConversationMessage | None:
        self._busy = True
        self._cancelled = False
        self._turn_reasoning = []
        tool_calls = 0
        try:
            if user_message is not None:
                await self._append(user_message)

            while True:
                if self._cancelled:
                    await self._report_error(StreamCancelledError())
                    return None

                result = await self._open_session()
                if not result.ok:
                    await self._report_error(result.error or StreamCancelledError())
                    return None

                self._turn_reasoning.extend(result.reasoning_segments)
                await self._emit(EventType.STREAM_COMPLETE, {
                    "has_tool_call": result.tool_call is not None,
                })

                if result.tool_call is None:
                    return await self._finalize(result)

                if tool_calls >= self.config.max_tool_iterations:
                    await self._report_error(
                        ToolCallLimitError(self.config.max_tool_iterations),
                    )
                    return None
                tool_calls += 1
                await self._handle_tool_call(result.tool_call)
        finally:
            self._session = None
            self._turn_reasoning = []
            self._busy = False

    async def _open_session(self) -> StreamResult:
        callbacks = StreamCallbacks(
            on_content=self._on_content,
            on_reasoning=self._on_reasoning,
            on_tool_call=self._on_tool_call,
        )
        self._session = StreamSession(
            self._client,
            self.config,
            self._history,
            tools=self._registry.get_openai_schemas(),
            callbacks=callbacks,
        )
        try:
            return await self._session.run()
        finally:
            self._session = None

    async def _handle_tool_call(self, call: ToolCallRequest) -> None:
        await self._append(ConversationMessage(
            role=Role.ASSISTANT,
            content=call.describe(),
            is_tool_call=True,
        ))

        response = await self._registry.dispatch(call.function_name, call.arguments)
        _logger.debug("Tool %s -> %s", call.function_name, response.status.value)
        await self._emit(EventType.TOOL_RESULT, {
            "id": call.id,
            "name": call.function_name,
            "status": response.status.value,
            "data": response.data,
        })

        await self._append(ConversationMessage(
            role=Role.TOOL,
            content=response.to_message(),
            tool_call_id=call.id,
            tool_name=call.function_name,
        ))

    async def _finalize(self, result: StreamResult) -> ConversationMessage | None:
        content = result.content.strip()
        if not content:
            _logger.debug("Turn ended without content; nothing appended")
            return None
        reasoning = "".join(self._turn_reasoning)
        message = ConversationMessage(
            role=Role.ASSISTANT,
            content=content,
            reasoning=reasoning or None,
        )
        self._turn_reasoning = []
        await self._append(message)
        return message

    # ------------------------------------------------------------------
    # Session callbacks
    # ------------------------------------------------------------------

    async def _on_content(self, text: str) -> None:
        await self._emit(EventType.CONTENT_DELTA, {"text": text})

    async def _on_reasoning(self, text: str) -> None:
        await self._emit(EventType.REASONING_DELTA, {"text": text})

    async def _on_tool_call(self, call: ToolCallRequest) -> None:
        await self._emit(EventType.TOOL_CALL_STARTED, {
            "id": call.id,
            "name": call.function_name,
            "arguments": call.arguments,
        })

    # ------------------------------------------------------------------
    # History mutation
    # ------------------------------------------------------------------

    async def _append(self, message: ConversationMessage) -> None:
        self._history.append(message)
        await self._emit(EventType.MESSAGE_APPENDED, {"message": message})

        evicted = self._window.enforce(self._history)
        if evicted:
            await self._emit(EventType.CONTEXT_EVICTED, {
                "count": len(evicted),
                "messages": evicted,
            })
        await self._emit(EventType.CONTEXT_STATS, {"stats": self.token_stats})

        if self._store is not None:
            self._store.save(self.config.session_id, self._history)

    async def _report_error(self, error: ChatStreamError) -> None:
        _logger.warning("Turn failed (%s): %s", error.kind.value, error.message)
        await self._emit(EventType.STREAM_ERROR, {
            "kind": error.kind.value,
            "message": error.message,
            "error": error,
        })

    async def _emit(self, event_type: EventType, data: dict[str, Any]) -> None:
        await self._event_bus.emit(DisplayEvent(type=event_type, data=data))
