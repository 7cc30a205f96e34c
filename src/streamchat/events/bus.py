"""Display sink for conversation events.

Deltas, appended messages, errors and window stats are published here and
rendered by whatever subscribes (the CLI, or a test recorder).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from streamchat.types import DisplayEvent, EventType

_logger = logging.getLogger(__name__)

_WILDCARD = "*"

# Sync or async callable taking a DisplayEvent
Handler = Callable[[DisplayEvent], Any]


class EventBus:
    """Async pub/sub keyed by :class:`EventType` value.

    Handlers run one after another in subscription order, type-specific
    handlers before ``"*"`` handlers.  ``emit()`` returns only after every
    handler has finished, so a renderer sees deltas in arrival order.  A
    failing handler is logged and skipped.
    """

    def __init__(self, max_history: int = 200) -> None:
        self._handlers: dict[str, list[Handler]] = {}
        self._history: list[DisplayEvent] = []
        self._max_history = max_history

    def subscribe(self, event_type: EventType | str, handler: Handler) -> None:
        self._handlers.setdefault(_key(event_type), []).append(handler)

    def unsubscribe(self, event_type: EventType | str, handler: Handler) -> None:
        handlers = self._handlers.get(_key(event_type), [])
        if handler in handlers:
            handlers.remove(handler)

    async def emit(self, event: DisplayEvent) -> None:
        self._record(event)
        targets = self._handlers.get(_key(event.type), []) + self._handlers.get(_WILDCARD, [])
        for handler in targets:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.exception(
                    "Display handler %s failed on %s",
                    getattr(handler, "__name__", handler), event.type.value,
                )

    @property
    def history(self) -> list[DisplayEvent]:
        """Most recent events, oldest first."""
        return list(self._history)

    def clear(self) -> None:
        self._handlers.clear()
        self._history.clear()

    def _record(self, event: DisplayEvent) -> None:
        self._history.append(event)
        overflow = len(self._history) - self._max_history
        if overflow > 0:
            del self._history[:overflow]


def _key(event_type: EventType | str) -> str:
    if isinstance(event_type, EventType):
        return event_type.value
    return str(event_type)
