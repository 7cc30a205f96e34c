"""Shared data types for streamchat."""

from __future__ import annotations

import enum
import json
import time
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# Conversation types
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Message author role."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ConversationMessage:
    """One role-tagged entry in the conversation history.

    ``reasoning`` is display-only metadata for assistant replies and is never
    persisted or sent to the service.
    """

    role: Role
    content: str
    reasoning: str | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    is_tool_call: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_request_message(self) -> dict[str, Any]:
        """Serialize for the outgoing request body."""
        msg: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_call_id:
            msg["tool_call_id"] = self.tool_call_id
        if self.tool_name:
            msg["tool_name"] = self.tool_name
        return msg

    def to_record(self) -> dict[str, Any]:
        """Serialize for persistence (reasoning stripped)."""
        return {
            "role": self.role.value,
            "content": self.content,
            "tool_call_id": self.tool_call_id,
            "tool_name": self.tool_name,
            "is_tool_call": self.is_tool_call,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ConversationMessage:
        return cls(
            role=Role(record["role"]),
            content=record.get("content", ""),
            tool_call_id=record.get("tool_call_id"),
            tool_name=record.get("tool_name"),
            is_tool_call=bool(record.get("is_tool_call", False)),
            timestamp=record.get("timestamp") or time.time(),
        )


# ---------------------------------------------------------------------------
# Tool types
# ---------------------------------------------------------------------------

@dataclass
class ToolParameter:
    """Definition of a tool parameter."""

    name: str
    type: str  # string, integer, boolean, array, object
    description: str
    required: bool = True
    enum: list[str] | None = None

    def to_property(self) -> dict[str, Any]:
        """JSON-schema fragment for this parameter."""
        prop: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.enum:
            prop["enum"] = list(self.enum)
        return prop


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool invocation requested by the service.  Consumed exactly once."""

    id: str
    function_name: str
    arguments: dict[str, Any]

    def describe(self) -> str:
        return f"Tool call {self.id}: {self.function_name}({json.dumps(self.arguments)})"


class ToolStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


@dataclass(frozen=True)
class ToolResponse:
    """Result envelope returned by tool dispatch: ``{status, data}``."""

    status: ToolStatus
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **data: Any) -> ToolResponse:
        return cls(status=ToolStatus.SUCCESS, data=data)

    @classmethod
    def failed(cls, error: str) -> ToolResponse:
        return cls(status=ToolStatus.FAILED, data={"error": error})

    @property
    def ok(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    def to_envelope(self) -> dict[str, Any]:
        return {"status": self.status.value, "data": self.data}

    def to_message(self) -> str:
        return json.dumps(self.to_envelope(), indent=2)


# ---------------------------------------------------------------------------
# Token accounting
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TokenStats:
    """Token usage derived from the conversation history."""

    total: int = 0
    reasoning_tokens: int = 0
    window_tokens: int = 0
    percentage_of_window: int = 0


# ---------------------------------------------------------------------------
# Display events
# ---------------------------------------------------------------------------

class EventType(enum.Enum):
    """Events delivered to the display sink."""

    CONTENT_DELTA = "content.delta"
    REASONING_DELTA = "reasoning.delta"
    TOOL_CALL_STARTED = "tool.call_started"
    TOOL_RESULT = "tool.result"
    MESSAGE_APPENDED = "message.appended"
    STREAM_ERROR = "stream.error"
    STREAM_COMPLETE = "stream.complete"

    CONTEXT_STATS = "context.stats"
    CONTEXT_EVICTED = "context.evicted"


@dataclass
class DisplayEvent:
    """Event emitted to the display sink via the EventBus."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
