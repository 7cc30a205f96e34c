"""Tool abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Awaitable

from streamchat.types import ToolParameter, ToolResponse


class Tool(ABC):
    """A function the model may call.

    Subclasses set ``name``, ``description`` and ``parameters`` as class
    attributes.  ``execute()`` receives the decoded arguments as keywords and
    may be a plain method or a coroutine; either way it produces a
    :class:`ToolResponse` envelope.
    """

    name: str
    description: str
    parameters: list[ToolParameter]

    @abstractmethod
    def execute(self, **kwargs: Any) -> ToolResponse | Awaitable[ToolResponse]:
        ...

    def to_openai_schema(self) -> dict[str, Any]:
        """Function-calling entry for the request's ``tools`` list."""
        parameters = {
            "type": "object",
            "properties": {p.name: p.to_property() for p in self.parameters},
            "required": [p.name for p in self.parameters if p.required],
        }
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters,
            },
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
