"""Main FastMCP server — mounts the animation sub-server."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from .providers import GeminiConversation
from .tools.animation import animation_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — tears down shared Gemini clients."""
    yield {}
    closed = await GeminiConversation.close_all()
    logger.info("Lifespan shutdown: closed %d client(s)", closed)


app = FastMCP(
    "motion-studio",
    instructions=(
        "Text-to-animation studio. Describe a React/CSS animation, refine it "
        "conversationally, tweak its exposed parameters locally, and fetch a "
        "sandboxed preview document."
    ),
    lifespan=_lifespan,
)

app.mount(animation_server)


def main() -> None:
    """Entry-point for ``motion-studio-mcp`` console script."""
    app.run()


if __name__ == "__main__":
    main()
