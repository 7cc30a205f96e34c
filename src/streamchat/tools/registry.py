"""Tool registry and dispatch."""

from __future__ import annotations

import inspect
import logging
from typing import Any

from streamchat.errors import ToolNotFoundError
from streamchat.tools.base import Tool
from streamchat.types import ToolResponse

_logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of available tools.

    ``dispatch()`` never raises for tool problems: unknown names and tool
    exceptions come back as FAILED envelopes so the model can react.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool instance."""
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def tool_names(self) -> list[str]:
        return list(self._tools.keys())

    async def dispatch(self, tool_name: str, arguments: dict[str, Any]) -> ToolResponse:
        """Execute a tool by name.  Awaits the tool if it is a coroutine."""
        tool = self._tools.get(tool_name)
        if tool is None:
            err = ToolNotFoundError(tool_name)
            _logger.warning("%s (available: %s)", err, ", ".join(self._tools))
            return ToolResponse.failed(str(err))
        try:
            result = tool.execute(**arguments)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            _logger.exception("Tool %s raised", tool_name)
            return ToolResponse.failed(
                f"Tool '{tool_name}' execution failed: {type(e).__name__}: {e}"
            )
        if not isinstance(result, ToolResponse):
            return ToolResponse.failed(
                f"Tool '{tool_name}' returned {type(result).__name__}, expected ToolResponse"
            )
        return result

    def get_openai_schemas(self) -> list[dict[str, Any]]:
        """Return OpenAI function-calling schemas for all registered tools."""
        return [t.to_openai_schema() for t in self._tools.values()]
