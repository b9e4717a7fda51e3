"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# ── Annotated aliases ────────────────────────────────────────────────────────

SessionId = Annotated[str, Field(min_length=1, description="Session ID returned by animation_generate")]
ModelKey = Annotated[str | None, Field(
    description="Registry key of the model to use (see animation_models); defaults to MOTION_DEFAULT_MODEL",
)]
AnimationPrompt = Annotated[str, Field(
    min_length=1,
    max_length=8000,
    description="Natural-language description of the animation to create",
)]
RefinementText = Annotated[str, Field(
    min_length=1,
    max_length=8000,
    description="Change to apply to the current animation",
)]
AnimationCode = Annotated[str, Field(description="Full replacement source for the animation")]
PropertyId = Annotated[str, Field(min_length=1, description="PARAMS key of the property to change")]
PropertyInput = Annotated[str | int | float | bool, Field(
    description="New value: string for colors and selects, number, or boolean",
)]
