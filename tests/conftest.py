"""Shared fixtures for streamchat tests."""

from __future__ import annotations

import pytest

from streamchat.config import ChatConfig


@pytest.fixture
def config() -> ChatConfig:
    return ChatConfig(
        base_url="http://chat.test/v1",
        model="test-model",
        context_window=4096,
        system_prompt="You are a test assistant.",
    )
