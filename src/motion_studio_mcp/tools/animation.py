"""Animation tools — 8 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from .. import router
from ..config import get_config
from ..errors import make_tool_error
from ..models.animation import HistoryEntry, SessionSnapshot
from ..prompts.animation import strip_refinement_prefix
from ..sessions import AnimationSession, session_store
from ..types import (
    AnimationCode,
    AnimationPrompt,
    ModelKey,
    PropertyId,
    PropertyInput,
    RefinementText,
    SessionId,
)

logger = logging.getLogger(__name__)

animation_server = FastMCP("animation")


def _snapshot(session: AnimationSession) -> dict:
    """Serialise a session for tool output; refinement templates are hidden."""
    state = session.state
    return SessionSnapshot(
        session_id=session.session_id,
        status=state.status,
        error=state.error,
        code=state.code,
        stylesheet=state.stylesheet,
        selected_model=state.selected_model,
        parameters=state.parameters,
        history=[
            HistoryEntry(
                role=msg.role,
                content=strip_refinement_prefix(msg.content) if msg.role == "user" else msg.content,
            )
            for msg in state.history
        ],
        turn_count=session.turn_count,
    ).model_dump(mode="json")


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def animation_models() -> dict:
    """List the selectable models and the default one.

    Returns:
        Dict with default_model and models (key, name, provider, model_id).
    """
    return {
        "default_model": get_config().default_model,
        "models": [m.model_dump() for m in router.list_models()],
    }


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def animation_generate(
    prompt: AnimationPrompt,
    model: ModelKey = None,
    session_id: Annotated[str | None, Field(
        description="Existing session to start over in; a new session is created when omitted",
    )] = None,
) -> dict:
    """Generate a new animation from a natural-language prompt.

    Starts a fresh conversation. Model failures come back as status="error"
    with the message in ``error``; the session keeps its previous animation.

    Args:
        prompt: What the animation should look like.
        model: Registry key from animation_models.
        session_id: Reuse this session instead of creating one.

    Returns:
        Session snapshot: session_id, status, error, code, stylesheet,
        parameters, history and turn_count.
    """
    try:
        session = session_store.require(session_id) if session_id else session_store.create()
    except KeyError as exc:
        return make_tool_error(exc)

    try:
        await session.generate(prompt, model or get_config().default_model)
    except Exception as exc:
        logger.error("animation_generate failed in session %s: %s", session.session_id, exc)
        return make_tool_error(exc)
    return _snapshot(session)


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=True,
    )
)
async def animation_refine(
    session_id: SessionId,
    instruction: RefinementText,
    model: ModelKey = None,
) -> dict:
    """Ask the model to change the current animation, keeping the conversation.

    Args:
        session_id: Session ID from animation_generate.
        instruction: The change to make.
        model: Registry key; defaults to the model the session last used.

    Returns:
        Session snapshot after the refinement round.
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    chosen = model or session.state.selected_model or get_config().default_model
    try:
        await session.refine(instruction, chosen)
    except Exception as exc:
        logger.error("animation_refine failed in session %s: %s", session.session_id, exc)
        return make_tool_error(exc)
    return _snapshot(session)


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def animation_update_code(
    session_id: SessionId,
    code: AnimationCode,
) -> dict:
    """Replace the animation source with hand-edited code.

    Status, history and parameters are left alone.

    Args:
        session_id: Session ID from animation_generate.
        code: Full replacement source.

    Returns:
        Session snapshot.
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    session.update_code(code)
    return _snapshot(session)


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def animation_set_property(
    session_id: SessionId,
    property_id: PropertyId,
    value: PropertyInput,
) -> dict:
    """Change one exposed parameter locally, without calling the model.

    Args:
        session_id: Session ID from animation_generate.
        property_id: PARAMS key to change.
        value: New literal value.

    Returns:
        Session snapshot plus ``applied`` (False when the key is not in PARAMS
        or the value does not fit the parameter's type).
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    applied = session.apply_property_change(property_id, value)
    result = _snapshot(session)
    result["applied"] = applied
    return result


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def animation_reset(session_id: SessionId) -> dict:
    """Clear the session back to its initial empty state.

    Args:
        session_id: Session ID from animation_generate.

    Returns:
        Session snapshot (idle, no code, no history).
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    session.reset()
    return _snapshot(session)


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=True,
        openWorldHint=False,
    )
)
async def animation_state(session_id: SessionId) -> dict:
    """Read the current state of a session.

    Args:
        session_id: Session ID from animation_generate.

    Returns:
        Session snapshot.
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)
    return _snapshot(session)


@animation_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=True,
        destructiveHint=False,
        idempotentHint=False,
        openWorldHint=False,
    )
)
async def animation_preview(
    session_id: SessionId,
    remount: Annotated[bool, Field(description="Force a fresh mount of the Animation component")] = False,
    as_iframe: Annotated[bool, Field(description="Also return ready-to-embed <iframe> markup")] = False,
) -> dict:
    """Build the sandboxed preview document for the current animation.

    Args:
        session_id: Session ID from animation_generate.
        remount: Bump the mount key and rebuild in a new execution context.
        as_iframe: Include an ``iframe`` field with srcdoc markup.

    Returns:
        Dict with html, mount_key, context_id and sandbox, or
        rendered=False when the session has no code yet.
    """
    try:
        session = session_store.require(session_id)
    except KeyError as exc:
        return make_tool_error(exc)

    state = session.state
    renderer = session.renderer
    if remount:
        doc = renderer.force_remount(state.code, state.stylesheet)
    else:
        doc = renderer.render(state.code, state.stylesheet)
    if doc is None:
        return {
            "session_id": session.session_id,
            "rendered": False,
            "status": state.status.value,
            "error": state.error,
        }

    result = {
        "session_id": session.session_id,
        "rendered": True,
        "status": state.status.value,
        "error": state.error,
        "html": doc.html,
        "mount_key": doc.mount_key,
        "context_id": doc.context_id,
        "sandbox": doc.sandbox,
    }
    if as_iframe:
        result["iframe"] = doc.iframe_markup()
    return result
