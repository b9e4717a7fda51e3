"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

import motion_studio_mcp.config as cfg_mod
from motion_studio_mcp.config import REACT_RUNTIME_URLS, ServerConfig, get_config, reset_config


class TestServerConfig:
    def test_defaults(self):
        cfg = ServerConfig()
        assert cfg.default_model == "gpt-oss-120b"
        assert cfg.gemini_model == "gemini-2.5-flash"
        assert cfg.temperature == 0.7
        assert cfg.top_k == 40
        assert cfg.top_p == 0.95
        assert cfg.max_output_tokens == 16384
        assert cfg.min_reply_chars == 100
        assert cfg.runtime_urls == REACT_RUNTIME_URLS

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("MOTION_DEFAULT_MODEL", "kimi-k2")
        monkeypatch.setenv("MOTION_TEMPERATURE", "1.2")
        monkeypatch.setenv("MOTION_MIN_REPLY_CHARS", "0")
        monkeypatch.setenv("MOTION_REQUEST_TIMEOUT", "30")
        monkeypatch.setenv("OPENROUTER_APP_TITLE", "My Studio")
        cfg = ServerConfig.from_env()
        assert cfg.openrouter_api_key == "or-test-key-not-real"
        assert cfg.gemini_api_key == "gm-test-key-not-real"
        assert cfg.default_model == "kimi-k2"
        assert cfg.temperature == 1.2
        assert cfg.min_reply_chars == 0
        assert cfg.request_timeout_seconds == 30.0
        assert cfg.openrouter_app_title == "My Studio"

    @pytest.mark.parametrize("field,value", [
        ("temperature", 2.5),
        ("temperature", -0.1),
        ("top_p", 0.0),
        ("top_p", 1.5),
        ("top_k", 0),
        ("max_output_tokens", 0),
        ("max_sessions", 0),
        ("min_reply_chars", -1),
        ("request_timeout_seconds", 0),
    ])
    def test_validators_reject(self, field, value):
        with pytest.raises(ValidationError):
            ServerConfig(**{field: value})


class TestSingleton:
    def test_get_config_caches(self):
        assert get_config() is get_config()

    def test_reset_config(self):
        first = get_config()
        reset_config()
        assert cfg_mod._config is None
        assert get_config() is not first

    def test_dotenv_loaded_on_first_access(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("OPENROUTER_API_KEY=from-file\nMOTION_TOP_K=12\n")
        monkeypatch.setattr("motion_studio_mcp.dotenv.DEFAULT_ENV_PATH", env_file)
        monkeypatch.delenv("OPENROUTER_API_KEY")
        monkeypatch.setenv("MOTION_TOP_K", "")

        cfg = get_config()

        assert cfg.openrouter_api_key == "from-file"
        assert cfg.top_k == 12
        assert cfg.gemini_api_key == "gm-test-key-not-real"
