"""Route decoded frames into content, reasoning and tool-call events.

A provider may carry reasoning in its own ``reasoning`` field, or inline in
the content channel between delimiter tokens (``<think>`` / ``</think>``).
The inline form is tracked by ``StreamAccumulator.in_reasoning_region``.
"""

from __future__ import annotations

import enum
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from streamchat.errors import DecodeError
from streamchat.stream.decoder import DONE, Frame
from streamchat.types import ToolCallRequest

_logger = logging.getLogger(__name__)


class DeltaKind(enum.Enum):
    CONTENT = "content"
    REASONING = "reasoning"
    TOOL_CALL = "tool_call"
    COMPLETE = "complete"


@dataclass(frozen=True)
class DeltaEvent:
    kind: DeltaKind
    text: str = ""
    tool_call: ToolCallRequest | None = None


@dataclass
class StreamAccumulator:
    """Per-session accumulated state.  The session holds the only instance."""

    content: str = ""
    reasoning_segments: list[str] = field(default_factory=list)
    pending_tool_call: ToolCallRequest | None = None
    in_reasoning_region: bool = False

    @property
    def reasoning(self) -> str:
        return "".join(self.reasoning_segments)

    def apply(self, event: DeltaEvent) -> None:
        if event.kind == DeltaKind.CONTENT:
            self.content += event.text
        elif event.kind == DeltaKind.REASONING:
            self.reasoning_segments.append(event.text)
        elif event.kind == DeltaKind.TOOL_CALL and self.pending_tool_call is None:
            self.pending_tool_call = event.tool_call


def _parse_arguments(raw: Any) -> dict[str, Any]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Undecodable tool-call arguments: %r", raw[:200])
            return {}
        if isinstance(parsed, dict):
            return parsed
    return {}


def _parse_tool_call(frame: str, entry: Any) -> ToolCallRequest:
    if not isinstance(entry, dict):
        raise DecodeError(frame, "tool call entry is not an object")
    func = entry.get("function") or {}
    if not isinstance(func, dict) or not isinstance(func.get("name", ""), str):
        raise DecodeError(frame, "tool call function is malformed")
    call_id = str(entry.get("id") or f"call_{uuid.uuid4().hex[:12]}")
    return ToolCallRequest(
        id=call_id,
        function_name=func.get("name", ""),
        arguments=_parse_arguments(func.get("arguments")),
    )


class DeltaClassifier:
    """Classify frames for one session.

    Precedence per delta: ``tool_calls`` (first entry only), then explicit
    ``reasoning``, then ``content``.  Content equal to a region delimiter
    toggles the accumulator's reasoning region and emits nothing.
    """

    def __init__(
        self,
        accumulator: StreamAccumulator,
        reasoning_open: str = "<think>",
        reasoning_close: str = "</think>",
    ) -> None:
        self._acc = accumulator
        self._open = reasoning_open
        self._close = reasoning_close

    def classify(self, frame: Frame) -> DeltaEvent | None:
        """Return the event for *frame*, or ``None`` when it carries nothing."""
        if frame is DONE:
            return DeltaEvent(kind=DeltaKind.COMPLETE)

        try:
            return self._classify_json(frame)
        except DecodeError as e:
            _logger.warning("%s", e)
            return None

    def _classify_json(self, frame: str) -> DeltaEvent | None:
        try:
            data = json.loads(frame)
        except json.JSONDecodeError as e:
            raise DecodeError(frame, str(e)) from e

        delta = _first_delta(frame, data)
        if delta is None:
            return None

        tool_calls = delta.get("tool_calls")
        if tool_calls:
            if not isinstance(tool_calls, list):
                raise DecodeError(frame, "tool_calls is not a list")
            if len(tool_calls) > 1:
                _logger.info(
                    "Service sent %d tool calls; only the first is honored",
                    len(tool_calls),
                )
            return DeltaEvent(
                kind=DeltaKind.TOOL_CALL,
                tool_call=_parse_tool_call(frame, tool_calls[0]),
            )

        reasoning = _text_field(frame, delta, "reasoning") or _text_field(
            frame, delta, "reasoning_content",
        )
        if reasoning:
            return DeltaEvent(kind=DeltaKind.REASONING, text=reasoning)

        content = _text_field(frame, delta, "content")
        if not content:
            return None
        if content == self._open:
            self._acc.in_reasoning_region = True
            return None
        if content == self._close:
            self._acc.in_reasoning_region = False
            return None
        if self._acc.in_reasoning_region:
            return DeltaEvent(kind=DeltaKind.REASONING, text=content)
        return DeltaEvent(kind=DeltaKind.CONTENT, text=content)


def _first_delta(frame: str, data: Any) -> dict[str, Any] | None:
    """The ``choices[0].delta`` object, or ``None`` for frames without choices."""
    if not isinstance(data, dict):
        raise DecodeError(frame, "chunk is not an object")
    choices = data.get("choices")
    if choices is None or choices == []:
        _logger.debug("Frame without choices: %r", frame[:80])
        return None
    if not isinstance(choices, list) or not isinstance(choices[0], dict):
        raise DecodeError(frame, "choices is not a list of objects")
    delta = choices[0].get("delta")
    if delta is None:
        return {}
    if not isinstance(delta, dict):
        raise DecodeError(frame, "delta is not an object")
    return delta


def _text_field(frame: str, delta: dict[str, Any], key: str) -> str:
    value = delta.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(frame, f"{key} is not a string")
    return value
