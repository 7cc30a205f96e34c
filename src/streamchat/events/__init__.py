"""Display event delivery."""

from streamchat.events.bus import EventBus

__all__ = ["EventBus"]
