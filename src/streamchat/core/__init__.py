"""Conversation control loop and context window management."""

from streamchat.core.context import ContextWindowManager
from streamchat.core.orchestrator import ToolCallOrchestrator

__all__ = [
    "ContextWindowManager",
    "ToolCallOrchestrator",
]
