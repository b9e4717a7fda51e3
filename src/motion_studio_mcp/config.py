"""Server configuration via environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

DEFAULT_MODEL_KEY = "gpt-oss-120b"

REACT_RUNTIME_URLS: tuple[str, ...] = (
    "https://unpkg.com/react@18/umd/react.development.js",
    "https://unpkg.com/react-dom@18/umd/react-dom.development.js",
    "https://unpkg.com/@babel/standalone/babel.min.js",
)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment."""

    openrouter_api_key: str = Field(default="")
    gemini_api_key: str = Field(default="")
    default_model: str = Field(default=DEFAULT_MODEL_KEY)
    gemini_model: str = Field(default="gemini-2.5-flash")
    temperature: float = Field(default=0.7)
    top_k: int = Field(default=40)
    top_p: float = Field(default=0.95)
    max_output_tokens: int = Field(default=16384)
    min_reply_chars: int = Field(default=100)
    request_timeout_seconds: float = Field(default=120.0)
    openrouter_api_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions")
    openrouter_app_title: str = Field(default="Motion Studio")
    openrouter_referer: str = Field(default="http://localhost")
    runtime_urls: tuple[str, ...] = Field(default=REACT_RUNTIME_URLS)
    preview_background: str = Field(default="#18181b")
    max_sessions: int = Field(default=50)
    session_timeout_hours: int = Field(default=2)

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("temperature must be between 0.0 and 2.0")
        return value

    @field_validator("top_p")
    @classmethod
    def validate_top_p(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("top_p must be in (0.0, 1.0]")
        return value

    @field_validator("top_k", "max_output_tokens", "max_sessions", "session_timeout_hours")
    @classmethod
    def validate_positive_ints(cls, value: int) -> int:
        if value < 1:
            raise ValueError("Configuration values must be >= 1")
        return value

    @field_validator("min_reply_chars")
    @classmethod
    def validate_min_reply_chars(cls, value: int) -> int:
        if value < 0:
            raise ValueError("min_reply_chars must be >= 0")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("request_timeout_seconds must be > 0")
        return value

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
            gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
            default_model=os.getenv("MOTION_DEFAULT_MODEL", DEFAULT_MODEL_KEY),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            temperature=float(os.getenv("MOTION_TEMPERATURE", "0.7")),
            top_k=int(os.getenv("MOTION_TOP_K", "40")),
            top_p=float(os.getenv("MOTION_TOP_P", "0.95")),
            max_output_tokens=int(os.getenv("MOTION_MAX_OUTPUT_TOKENS", "16384")),
            min_reply_chars=int(os.getenv("MOTION_MIN_REPLY_CHARS", "100")),
            request_timeout_seconds=float(os.getenv("MOTION_REQUEST_TIMEOUT", "120")),
            openrouter_api_url=os.getenv(
                "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
            ),
            openrouter_app_title=os.getenv("OPENROUTER_APP_TITLE", "Motion Studio"),
            openrouter_referer=os.getenv("OPENROUTER_REFERER", "http://localhost"),
            max_sessions=int(os.getenv("MOTION_MAX_SESSIONS", "50")),
            session_timeout_hours=int(os.getenv("MOTION_SESSION_TIMEOUT_HOURS", "2")),
        )


_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/motion-studio-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logging.getLogger(__name__).info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def reset_config() -> None:
    """Reset the config singleton (for testing)."""
    global _config
    _config = None
