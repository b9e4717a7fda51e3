"""Shared test fixtures for motion-studio-mcp."""

from __future__ import annotations

from typing import Any

import pytest

import motion_studio_mcp.config as cfg_mod
from motion_studio_mcp.providers import GeminiConversation
from motion_studio_mcp.sessions import session_store


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True)
def _set_dummy_api_keys(monkeypatch):
    """Ensure tests never hit a real provider with real credentials."""
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-test-key-not-real")
    monkeypatch.setenv("GEMINI_API_KEY", "gm-test-key-not-real")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading the user's real ~/.config/motion-studio-mcp/.env."""
    monkeypatch.setattr(
        "motion_studio_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config singleton between tests."""
    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture(autouse=True)
def _clean_shared_state():
    """Drop sessions and pooled Gemini clients left behind by a test."""
    session_store._sessions.clear()
    GeminiConversation._clients.clear()
    yield
    session_store._sessions.clear()
    GeminiConversation._clients.clear()


SAMPLE_CODE = """const PARAMS = {
  primaryColor: '#6366f1',
  size: 100,
  speed: 2,
  showGlow: true,
  easing: 'ease-in-out',
};

function Animation() {
  return <div className="box" style={{ width: PARAMS.size, background: PARAMS.primaryColor }} />;
}

const root = ReactDOM.createRoot(document.getElementById('root'));
root.render(<Animation />);
window.__rendered = true;"""

SAMPLE_CSS = ".box { animation: spin 2s linear infinite; }"

SAMPLE_PROPERTIES = """[
  {"id": "primaryColor", "label": "Primary Color", "type": "color", "value": "#6366f1"},
  {"id": "size", "label": "Size", "type": "number", "value": 100, "min": 20, "max": 300, "step": 10},
  {"id": "speed", "label": "Speed", "type": "number", "value": 2, "min": 0.5, "max": 10, "step": 0.5},
  {"id": "showGlow", "label": "Show Glow", "type": "boolean", "value": true},
  {"id": "easing", "label": "Easing", "type": "select", "value": "ease-in-out",
   "options": ["linear", "ease-in", "ease-out", "ease-in-out"]}
]"""


def delimited_reply(
    code: str = SAMPLE_CODE,
    css: str = SAMPLE_CSS,
    properties: str = SAMPLE_PROPERTIES,
    explanation: str = "A spinning square.",
) -> str:
    """Build a model reply in the delimited [CODE]/[CSS]/[PROPERTIES] contract."""
    return (
        f"{explanation}\n\n"
        f"[CODE]\n{code}\n[/CODE]\n\n"
        f"[CSS]\n{css}\n[/CSS]\n\n"
        f"[PROPERTIES]\n{properties}\n[/PROPERTIES]"
    )


@pytest.fixture()
def sample_reply() -> str:
    """A complete, well-formed model reply."""
    return delimited_reply()
