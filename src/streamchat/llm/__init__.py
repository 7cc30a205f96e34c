"""HTTP transport for the chat-completions service."""

from streamchat.llm.client import AsyncChatClient, build_payload

__all__ = ["AsyncChatClient", "build_payload"]
