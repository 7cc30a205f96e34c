"""Tests for streamchat config loading."""

import pytest
import yaml

from streamchat.config import DEFAULT_SYSTEM_PROMPT, ChatConfig, load_config
from streamchat.errors import ConfigError


class TestChatConfig:
    def test_defaults(self):
        cfg = ChatConfig()
        assert cfg.base_url == "http://localhost:11434/v1"
        assert cfg.model == "gpt-oss:latest"
        assert cfg.context_window == 4096
        assert cfg.read_timeout is None
        assert cfg.max_tool_iterations > 0
        assert cfg.system_prompt == DEFAULT_SYSTEM_PROMPT

    def test_system_prompt_describes_envelope(self):
        assert '"status"' in DEFAULT_SYSTEM_PROMPT
        assert '"data"' in DEFAULT_SYSTEM_PROMPT
        assert "re-verify" in DEFAULT_SYSTEM_PROMPT

    def test_completions_url(self):
        cfg = ChatConfig(base_url="http://host:1234/v1/")
        assert cfg.completions_url == "http://host:1234/v1/chat/completions"


class TestLoadConfig:
    def test_defaults_when_no_file(self, tmp_path):
        cfg = load_config(tmp_path / "does_not_exist.yaml")
        assert cfg == ChatConfig()

    def test_load_from_yaml(self, tmp_path):
        config = {
            "base_url": "https://api.example.com/v1",
            "model": "qwen3-8b",
            "context_window": 8192,
            "read_timeout": 30,
            "max_tool_iterations": 3,
            "reasoning_open": "<reasoning>",
        }
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump(config))

        cfg = load_config(config_path)
        assert cfg.base_url == "https://api.example.com/v1"
        assert cfg.model == "qwen3-8b"
        assert cfg.context_window == 8192
        assert cfg.read_timeout == 30
        assert cfg.max_tool_iterations == 3
        assert cfg.reasoning_open == "<reasoning>"
        assert cfg.reasoning_close == "</think>"

    def test_load_empty_yaml(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("")
        assert load_config(config_path) == ChatConfig()

    def test_unknown_keys_ignored(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(yaml.dump({"model": "m", "colour": "blue"}))
        cfg = load_config(config_path)
        assert cfg.model == "m"

    def test_non_mapping_rejected(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError):
            load_config(config_path)
