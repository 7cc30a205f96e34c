"""Async HTTP transport for an OpenAI-compatible chat-completions endpoint."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from streamchat.config import ChatConfig
from streamchat.types import ConversationMessage

_logger = logging.getLogger(__name__)


def build_payload(
    config: ChatConfig,
    messages: Sequence[ConversationMessage],
    tools: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build the streaming request body with the system prompt prepended."""
    request_messages: list[dict[str, Any]] = [
        {"role": "system", "content": config.system_prompt},
    ]
    request_messages.extend(m.to_request_message() for m in messages)
    return {
        "model": config.model,
        "messages": request_messages,
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        "top_p": config.top_p,
        "top_k": config.top_k,
        "stream": True,
        "tools": tools or [],
        "tool_selection": config.tool_selection,
    }


class AsyncChatClient:
    """Owns the ``httpx.AsyncClient`` used by stream sessions.

    Parameters
    ----------
    config:
        Connection settings.  ``read_timeout`` of ``None`` disables the
        per-chunk read timeout.
    transport:
        Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        config: ChatConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=config.base_url.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(
                None,
                connect=config.connect_timeout,
                read=config.read_timeout,
            ),
            transport=transport,
        )

    @property
    def url(self) -> str:
        return self.config.completions_url

    def stream(self, payload: dict[str, Any]):
        """Open a streaming POST.  Use as ``async with client.stream(...)``."""
        _logger.debug(
            "POST %s (model=%s, %d messages)",
            self.url, payload.get("model"), len(payload.get("messages", [])),
        )
        return self._client.stream("POST", "/chat/completions", json=payload)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
