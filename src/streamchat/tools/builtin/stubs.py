"""Mock file tools.  They describe what they would do without touching disk."""

from __future__ import annotations

from typing import Any

from streamchat.tools.base import Tool
from streamchat.types import ToolParameter, ToolResponse


class ReadFileTool(Tool):
    name = "tool_read_file"
    description = (
        "Read the contents of a given file path or search for files containing "
        "a pattern. When searching file contents, returns line numbers where "
        "the pattern is found."
    )
    parameters = [
        ToolParameter(
            name="path", type="string",
            description=(
                "The relative path of a file in the working directory. If pattern "
                "is provided, this can be a directory path to search in."
            ),
        ),
    ]

    def execute(self, **kwargs: Any) -> ToolResponse:
        path = kwargs.get("path") or "unknown"
        return ToolResponse.success(
            file_contents=(
                f"Mock file contents for {path}\n\n"
                "This is a placeholder response from the stubbed tool."
            ),
        )


class SearchFilesTool(Tool):
    name = "tool_search_files"
    description = (
        "Search a directory at a given path for files that match a given file "
        "name or contain a given string. If no path is provided, search files "
        "will look in the current directory."
    )
    parameters = [
        ToolParameter(
            name="path", type="string",
            description="Relative path to search files from. Defaults to current directory.",
        ),
        ToolParameter(
            name="filter", type="string", required=False,
            description="Regex filter applied to file names.",
        ),
        ToolParameter(
            name="contains", type="string", required=False,
            description="Regex that matching files must contain.",
        ),
    ]

    def execute(self, **kwargs: Any) -> ToolResponse:
        path = kwargs.get("path") or "."
        return ToolResponse.success(
            files=[
                f"{path}/main.go",
                f"{path}/go.mod",
                f"{path}/internal/server.go",
            ],
        )


class CreateFileTool(Tool):
    name = "tool_create_file"
    description = "Creates a new file"
    parameters = [
        ToolParameter(
            name="path", type="string",
            description="Relative path and name of the file to create.",
        ),
    ]

    def execute(self, **kwargs: Any) -> ToolResponse:
        path = kwargs.get("path") or "unknown"
        return ToolResponse.success(message=f"Mock: Created file at {path}")


class GoCodeEditorTool(Tool):
    name = "tool_go_code_editor"
    description = "Edit Golang source code files including adding, replacing, and deleting lines."
    parameters = [
        ToolParameter(name="path", type="string", description="Relative path and name of the Golang file"),
        ToolParameter(name="line_number", type="integer", description="The line number for the code change"),
        ToolParameter(
            name="type_change", type="string",
            description="The type of change to make",
            enum=["add", "replace", "delete"],
        ),
        ToolParameter(name="line_change", type="string", description="The text to add, replace, delete"),
    ]

    _ACTIONS = {
        "add": "Added line at position {n}",
        "replace": "Replaced line {n}",
        "delete": "Deleted line {n}",
    }

    def execute(self, **kwargs: Any) -> ToolResponse:
        path = kwargs.get("path") or "unknown"
        line_number = kwargs.get("line_number") or 1
        type_change = kwargs.get("type_change") or "add"
        template = self._ACTIONS.get(type_change, "Unknown action: {kind}")
        action = template.format(n=line_number, kind=type_change)
        return ToolResponse.success(
            message=f"Mock: {action} in {path}",
            change=kwargs.get("line_change") or "",
        )
