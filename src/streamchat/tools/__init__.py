"""Tool dispatch for streamchat."""

from streamchat.tools.base import Tool
from streamchat.tools.registry import ToolRegistry

__all__ = ["Tool", "ToolRegistry"]
