"""Load provider keys from a shared ``.env`` file.

MCP hosts often launch the server with a bare environment, so API keys are
also read from ``~/.config/motion-studio-mcp/.env``. Variables already present
in the process environment always win. No external dependencies.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_ENV_PATH = Path.home() / ".config" / "motion-studio-mcp" / ".env"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def _needs_value(key: str, current: str | None) -> bool:
    """Return True when *current* should be replaced by the file value.

    Blank values and unresolved self-references such as ``${OPENROUTER_API_KEY}``
    (passed through verbatim by some MCP hosts) count as unset.
    """
    if current is None:
        return True
    value = _strip_quotes(current.strip()).strip()
    if not value:
        return True
    if value in {f"${key}", f"${{{key}}}"}:
        return True
    return value.startswith(f"${{{key}:-") and value.endswith("}")


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*.

    Handles quoted values, ``export`` prefixes, blank lines and ``#`` comments.
    Lines without ``=`` are skipped. A missing file yields an empty dict.
    """
    values: dict[str, str] = {}
    if not path.is_file():
        return values

    for raw in path.read_text().splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.removeprefix("export ").strip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        values[key] = _strip_quotes(value.strip())
    return values


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Inject variables from *path* into ``os.environ`` where they are unset.

    Returns:
        The variables that were actually injected.
    """
    injected: dict[str, str] = {}
    for key, value in parse_dotenv(path or DEFAULT_ENV_PATH).items():
        if _needs_value(key, os.environ.get(key)):
            os.environ[key] = value
            injected[key] = value
    return injected
