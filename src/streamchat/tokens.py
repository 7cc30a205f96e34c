"""Character-based token estimation."""

from __future__ import annotations

import math
from typing import Iterable

from streamchat.types import ConversationMessage, Role, TokenStats

# Rough chars-per-token ratio
_CHARS_PER_TOKEN = 4


def estimate_tokens(text: str | None) -> int:
    """Approximate token count: one token per four characters, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / _CHARS_PER_TOKEN)


def compute_token_stats(
    messages: Iterable[ConversationMessage],
    context_window: int,
    pending_reasoning: Iterable[str] = (),
) -> TokenStats:
    """Derive :class:`TokenStats` from history.

    System messages do not count toward the window.  ``pending_reasoning``
    holds reasoning segments of a reply still being streamed.
    """
    window = 0
    reasoning = 0
    for msg in messages:
        if msg.role == Role.SYSTEM:
            continue
        window += estimate_tokens(msg.content)
        reasoning += estimate_tokens(msg.reasoning)
    reasoning += estimate_tokens("".join(pending_reasoning))

    percentage = round(window / context_window * 100) if context_window > 0 else 0
    return TokenStats(
        total=window + reasoning,
        reasoning_tokens=reasoning,
        window_tokens=window,
        percentage_of_window=percentage,
    )
