"""Generation session state machine and the in-memory session registry."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

from pydantic import ValidationError

from . import router
from .config import get_config
from .errors import MotionStudioError
from .models.animation import (
    ConversationResult,
    GenerationStatus,
    Message,
    PropertySchema,
    PropertyValue,
    SessionState,
)
from .patcher import apply_property_change, read_param_literals
from .prompts.animation import build_refinement_instruction
from .renderer import SandboxedRenderer

logger = logging.getLogger(__name__)


class AnimationSession:
    """Owns one editor session's :class:`SessionState`.

    ``generate``, ``refine``, ``update_code``, ``apply_property_change`` and
    ``reset`` are the only mutators. Status flips to ``generating`` before the
    model call is awaited. Overlapping calls are not serialised: whichever
    completes last writes the state.
    """

    def __init__(self, session_id: str | None = None) -> None:
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.state = SessionState()
        self.renderer = SandboxedRenderer()
        self.created_at = datetime.now()
        self.last_active = self.created_at

    def _begin(self, model: str) -> None:
        self.state.status = GenerationStatus.GENERATING
        self.state.error = None
        self.state.selected_model = model
        self.last_active = datetime.now()

    def _succeed(self, result: ConversationResult) -> None:
        response = result.response
        self.state.code = response.code
        self.state.stylesheet = response.stylesheet
        self.state.parameters = list(response.parameters)
        self.state.history = list(result.updated_history)
        self.state.status = GenerationStatus.SUCCESS
        self.state.error = None
        self.last_active = datetime.now()

    def _fail(self, exc: Exception) -> None:
        self.state.status = GenerationStatus.ERROR
        self.state.error = str(exc) or "An unexpected error occurred"
        self.last_active = datetime.now()
        logger.warning("Session %s turn failed: %s", self.session_id, self.state.error)

    async def _run(self, instruction: str, model: str, history: list[Message]) -> bool:
        self._begin(model)
        try:
            service = router.resolve(model)
            result = await service.run(instruction, history)
        except MotionStudioError as exc:
            self._fail(exc)
            return False
        except Exception as exc:
            self._fail(exc)
            raise
        self._succeed(result)
        logger.info(
            "Session %s turn done: model=%s turns=%d properties=%d",
            self.session_id,
            model,
            len(self.state.history) // 2,
            len(self.state.parameters),
        )
        return True

    async def generate(self, prompt: str, model: str) -> bool:
        """Start a fresh conversation from *prompt*. Returns True on success.

        Prior history is discarded on success only; a failure leaves code,
        stylesheet, parameters and history as they were.
        """
        return await self._run(prompt, model, [])

    async def refine(self, instruction: str, model: str) -> None:
        """Continue the conversation with a refinement request.

        Failures are reported through ``state.status`` and ``state.error`` only.
        """
        await self._run(build_refinement_instruction(instruction), model, list(self.state.history))

    def update_code(self, code: str) -> None:
        """Replace the current code without touching status or history."""
        self.state.code = code
        self.last_active = datetime.now()

    def apply_property_change(self, property_id: str, value: PropertyValue) -> bool:
        """Patch ``PARAMS[property_id]`` locally.

        Returns False when the key is unknown or *value* does not fit the
        matching schema entry's ``type``; nothing is touched in either case.
        Otherwise that entry's ``value`` is updated too so readers see the
        control's current value.
        """
        if property_id not in read_param_literals(self.state.code):
            logger.debug("Session %s: no PARAMS key '%s'", self.session_id, property_id)
            return False

        updated = list(self.state.parameters)
        for index, prop in enumerate(updated):
            if prop.id != property_id:
                continue
            try:
                updated[index] = PropertySchema.model_validate({**prop.model_dump(), "value": value})
            except ValidationError as exc:
                logger.warning("Session %s: rejected value for '%s': %s", self.session_id, property_id, exc)
                return False

        self.update_code(apply_property_change(self.state.code, property_id, value))
        self.state.parameters = updated
        return True

    def reset(self) -> None:
        """Return to the initial idle state."""
        self.state = SessionState()
        self.last_active = datetime.now()

    @property
    def turn_count(self) -> int:
        return sum(1 for msg in self.state.history if msg.role == "user")


class SessionStore:
    """Process-wide session registry with TTL and max-count eviction."""

    def __init__(self) -> None:
        self._sessions: dict[str, AnimationSession] = {}

    def create(self) -> AnimationSession:
        """Create a new session, evicting expired ones first."""
        self._evict_expired()
        cfg = get_config()
        if len(self._sessions) >= cfg.max_sessions:
            oldest_id = min(self._sessions, key=lambda k: self._sessions[k].last_active)
            del self._sessions[oldest_id]
            logger.info("Evicted least recently used session %s", oldest_id)

        session = AnimationSession()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> AnimationSession | None:
        """Look up a live session by ID."""
        self._evict_expired()
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> AnimationSession:
        """Like :meth:`get` but raises ``KeyError`` for unknown or expired IDs."""
        session = self.get(session_id)
        if session is None:
            raise KeyError(f"Session {session_id} not found or expired")
        return session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict_expired(self) -> int:
        """Remove sessions idle longer than the configured timeout. Returns count evicted."""
        timeout = timedelta(hours=get_config().session_timeout_hours)
        now = datetime.now()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_active > timeout]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    @property
    def count(self) -> int:
        """Number of live sessions."""
        return len(self._sessions)


# Module-level singleton
session_store = SessionStore()
