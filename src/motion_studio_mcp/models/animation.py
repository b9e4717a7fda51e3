"""Animation models — conversation turns, parsed replies, property schemas, session state."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

KNOWN_PROPERTY_TYPES = frozenset({"color", "number", "boolean", "select"})

PropertyValue = str | int | float | bool


class Message(BaseModel):
    """One conversation turn.

    ``reasoning_details`` is provider continuation state (OpenRouter reasoning
    details, a Gemini content dump with thought signatures). It is stored
    verbatim and replayed on the next call, never interpreted, and only by the
    provider named in ``reasoning_provider``. Other providers see ``content``.
    """

    role: Literal["user", "assistant", "system"]
    content: str
    reasoning_details: Any | None = None
    reasoning_provider: str | None = None


class PropertySchema(BaseModel):
    """Editable control bound to one key of the generated ``PARAMS`` block."""

    id: str = Field(min_length=1, description="Key inside the PARAMS block, e.g. 'ballColor'")
    label: str = Field(description="Human-friendly label, e.g. 'Ball Color'")
    type: str = Field(description="color | number | boolean | select (others pass through)")
    # bool listed first so JSON true/false are not coerced to 1/0
    value: bool | int | float | str
    min: float | None = None
    max: float | None = None
    step: float | None = None
    options: list[str] | None = None

    @model_validator(mode="after")
    def _value_matches_type(self) -> PropertySchema:
        value = self.value
        if self.type == "boolean" and not isinstance(value, bool):
            raise ValueError(f"property '{self.id}': boolean value expected, got {value!r}")
        if self.type == "number" and (isinstance(value, bool) or not isinstance(value, (int, float))):
            raise ValueError(f"property '{self.id}': numeric value expected, got {value!r}")
        if self.type in {"color", "select"} and not isinstance(value, str):
            raise ValueError(f"property '{self.id}': string value expected, got {value!r}")
        return self

    @property
    def is_known_type(self) -> bool:
        return self.type in KNOWN_PROPERTY_TYPES


def ensure_unique_ids(parameters: list[PropertySchema]) -> list[PropertySchema]:
    """Return *parameters* unchanged, or raise if two entries share an ``id``."""
    seen: set[str] = set()
    for prop in parameters:
        if prop.id in seen:
            raise ValueError(f"duplicate property id '{prop.id}'")
        seen.add(prop.id)
    return parameters


class ParsedResponse(BaseModel):
    """Structured result extracted from one model reply."""

    code: str = Field(min_length=1)
    stylesheet: str = ""
    explanation: str | None = None
    parameters: list[PropertySchema] = Field(default_factory=list)


class ConversationResult(BaseModel):
    """Outcome of one successful generate/refine round."""

    response: ParsedResponse
    updated_history: list[Message]


class GenerationStatus(str, Enum):
    """Session lifecycle states."""

    IDLE = "idle"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"


class SessionState(BaseModel):
    """Everything one editor session knows. ``SessionState()`` is the initial value."""

    code: str = ""
    stylesheet: str = ""
    status: GenerationStatus = GenerationStatus.IDLE
    error: str | None = None
    history: list[Message] = Field(default_factory=list)
    selected_model: str = ""
    parameters: list[PropertySchema] = Field(default_factory=list)


# ── Tool output models ───────────────────────────────────────────────────────


class ModelInfo(BaseModel):
    """Display metadata for one selectable model."""

    key: str
    name: str
    provider: str
    model_id: str


class HistoryEntry(BaseModel):
    """History turn as shown to a chat panel (refinement template stripped)."""

    role: str
    content: str


class SessionSnapshot(BaseModel):
    """Output schema for animation_state and the mutating tools."""

    session_id: str
    status: GenerationStatus
    error: str | None = None
    code: str = ""
    stylesheet: str = ""
    selected_model: str = ""
    parameters: list[PropertySchema] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)
    turn_count: int = 0
