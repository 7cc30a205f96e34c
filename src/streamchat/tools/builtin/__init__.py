"""Built-in stub tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from streamchat.tools.registry import ToolRegistry


def register_builtins(registry: ToolRegistry) -> None:
    """Register all built-in tools with the given registry."""
    from streamchat.tools.builtin.stubs import (
        CreateFileTool,
        GoCodeEditorTool,
        ReadFileTool,
        SearchFilesTool,
    )

    for tool_cls in [
        ReadFileTool,
        SearchFilesTool,
        CreateFileTool,
        GoCodeEditorTool,
    ]:
        registry.register(tool_cls())
