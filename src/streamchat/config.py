"""Configuration for streamchat.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./streamchat.yaml``
  3. ``~/.config/streamchat/config.yaml``
  4. Built-in defaults
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from streamchat.errors import ConfigError

_logger = logging.getLogger(__name__)


DEFAULT_SYSTEM_PROMPT = """\
You are a helpful coding assistant with access to tools for reading, \
searching, creating and editing files.

When you call a tool, its result is returned to you as a JSON object of the form:
  {"status": "SUCCESS" | "FAILED", "data": {...}}

Rules:
- Treat a SUCCESS result as authoritative. Do not call the same tool again \
to re-verify its output.
- If a result is FAILED, read data.error and decide whether to try a \
different approach or explain the failure to the user.
- Call at most one tool at a time and wait for its result.
"""


@dataclass
class ChatConfig:
    """Connection, sampling and conversation settings.

    ``read_timeout`` of ``None`` waits indefinitely for the next chunk.
    ``max_tool_iterations`` bounds consecutive tool round-trips per user
    message.
    """

    base_url: str = "http://localhost:11434/v1"
    api_key: str = "no-key"
    model: str = "gpt-oss:latest"
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    # Sampling
    max_tokens: int = 2048
    temperature: float = 0.7
    top_p: float = 0.9
    top_k: int = 40
    tool_selection: str = "auto"

    # Conversation
    context_window: int = 4096
    max_tool_iterations: int = 10
    reasoning_open: str = "<think>"
    reasoning_close: str = "</think>"

    # Transport
    connect_timeout: float = 10.0
    read_timeout: float | None = None

    # Persistence
    history_path: str = "~/.streamchat/history.db"
    session_id: str = "default"

    @property
    def completions_url(self) -> str:
        return self.base_url.rstrip("/") + "/chat/completions"


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./streamchat.yaml"),
    Path.home() / ".config" / "streamchat" / "config.yaml",
]


def _parse_config(raw: dict[str, Any]) -> ChatConfig:
    known = {f.name for f in fields(ChatConfig)}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            _logger.warning("Ignoring unknown config key: %s", key)
            continue
        if value is not None:
            values[key] = value
    return ChatConfig(**values)


def load_config(path: str | Path | None = None) -> ChatConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Returns
    -------
    ChatConfig
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return ChatConfig()
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return ChatConfig()

    _logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: expected a mapping at top level")

    return _parse_config(raw)
