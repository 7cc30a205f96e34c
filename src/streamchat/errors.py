"""Structured error types for streamchat."""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    SERVER = "server"
    DECODE = "decode"
    CANCELLED = "cancelled"
    TOOL_NOT_FOUND = "tool_not_found"
    TOOL_LIMIT = "tool_limit"
    BUSY = "busy"
    CALLBACK = "callback"


class ChatStreamError(Exception):
    """Base error for all streamchat operations."""

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TransportError(ChatStreamError):
    """The service could not be reached, or the connection dropped."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, url: str, detail: str = ""):
        self.url = url
        self.detail = detail
        message = f"Service unreachable. Make sure the chat service is running at {url}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class StreamTimeoutError(TransportError):
    """No data arrived within the configured read timeout."""

    kind = ErrorKind.TIMEOUT


class ServerError(ChatStreamError):
    """The service answered with a non-2xx status."""

    kind = ErrorKind.SERVER

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class DecodeError(ChatStreamError):
    """A stream frame was not valid JSON or not a chat-completion chunk."""

    kind = ErrorKind.DECODE

    def __init__(self, payload: str, detail: str = ""):
        self.payload = payload
        super().__init__(f"Malformed frame {payload[:80]!r}: {detail}")


class StreamCancelledError(ChatStreamError):
    kind = ErrorKind.CANCELLED

    def __init__(self, message: str = "Stream cancelled"):
        super().__init__(message)


class StreamCallbackError(ChatStreamError):
    """A caller-supplied delta callback raised while the stream was running."""

    kind = ErrorKind.CALLBACK

    def __init__(self, callback_name: str, detail: str):
        self.callback_name = callback_name
        super().__init__(f"Callback {callback_name} failed: {detail}")


class ToolNotFoundError(ChatStreamError):
    kind = ErrorKind.TOOL_NOT_FOUND

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} not found")


class ToolCallLimitError(ChatStreamError):
    """The service kept requesting tools past the configured limit."""

    kind = ErrorKind.TOOL_LIMIT

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Tool-call limit exceeded ({limit} consecutive tool calls)")


class ConversationBusyError(ChatStreamError):
    kind = ErrorKind.BUSY

    def __init__(self):
        super().__init__("A response is still in progress")


class ConfigError(Exception):
    """Invalid configuration file."""
