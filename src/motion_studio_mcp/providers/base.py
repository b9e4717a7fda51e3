"""Capability interface shared by every provider-backed conversation service."""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from ..config import get_config
from ..errors import ConfigurationError, ProviderError, ProviderErrorKind
from ..models.animation import ConversationResult, Message
from ..parser import parse_response

logger = logging.getLogger(__name__)


@runtime_checkable
class ConversationService(Protocol):
    """One generate/refine round against a single backing provider.

    Implementations are stateless with respect to conversations: history is
    passed in and the extended history is handed back.
    """

    provider: str
    model_id: str

    async def run(self, instruction: str, history: list[Message]) -> ConversationResult:
        """Send *instruction* after *history* and parse the reply.

        Raises:
            ConfigurationError: Missing API key.
            TransportError: Unclassified non-success status or network failure.
            ProviderError: Classified provider failure or structurally invalid reply.
            ParseError: Valid reply without extractable code.
        """
        ...


def require_api_key(value: str, env_var: str, provider: str) -> str:
    """Return *value* or raise before any network call is attempted."""
    if not value:
        raise ConfigurationError(
            f"{provider} API key not found. Set {env_var} in the environment "
            "or ~/.config/motion-studio-mcp/.env."
        )
    return value


def check_reply_text(text: str | None) -> str:
    """Reject empty or implausibly short replies before they reach the parser."""
    if not text or not text.strip():
        raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE)
    minimum = get_config().min_reply_chars
    if len(text) < minimum:
        logger.error("Reply too short (%d < %d chars): %r", len(text), minimum, text)
        raise ProviderError(ProviderErrorKind.SHORT_RESPONSE)
    return text


def complete_turn(
    instruction: str,
    history: list[Message],
    reply_text: str,
    reasoning_details: Any | None = None,
    provider: str | None = None,
) -> ConversationResult:
    """Parse *reply_text* and append the user/assistant pair to *history*.

    *provider* tags *reasoning_details* so only that provider replays it.
    """
    response = parse_response(reply_text)
    updated = [
        *history,
        Message(role="user", content=instruction),
        Message(
            role="assistant",
            content=reply_text,
            reasoning_details=reasoning_details,
            reasoning_provider=provider if reasoning_details is not None else None,
        ),
    ]
    return ConversationResult(response=response, updated_history=updated)
