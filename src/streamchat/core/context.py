"""Context window accounting and head-truncation eviction."""

from __future__ import annotations

import logging

from streamchat.tokens import compute_token_stats
from streamchat.types import ConversationMessage, TokenStats

_logger = logging.getLogger(__name__)

# Messages dropped from the head per eviction step
_EVICT_BATCH = 2


class ContextWindowManager:
    """Keeps a message history within a token budget.

    Eviction is best-effort: it runs after a mutation, so the history may
    briefly exceed the window.  The oldest messages go first, system
    messages included.
    """

    def __init__(self, context_window: int) -> None:
        self.context_window = context_window

    def stats(
        self,
        history: list[ConversationMessage],
        pending_reasoning: list[str] | None = None,
    ) -> TokenStats:
        return compute_token_stats(history, self.context_window, pending_reasoning or ())

    def enforce(self, history: list[ConversationMessage]) -> list[ConversationMessage]:
        """Evict from the head of *history* in place.  Returns evicted messages."""
        evicted: list[ConversationMessage] = []
        stats = self.stats(history)
        while stats.window_tokens > self.context_window and len(history) >= _EVICT_BATCH:
            evicted.extend(history[:_EVICT_BATCH])
            del history[:_EVICT_BATCH]
            stats = self.stats(history)
        if evicted:
            _logger.info(
                "Evicted %d oldest messages (window now %d/%d tokens)",
                len(evicted), stats.window_tokens, self.context_window,
            )
        return evicted
