"""Gemini conversation service on the google-genai SDK, with a shared client pool."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..config import get_config
from ..errors import ProviderError, ProviderErrorKind, TransportError, classify_http_failure
from ..models.animation import ConversationResult, Message
from ..prompts.animation import ANIMATION_SYSTEM_PROMPT
from .base import check_reply_text, complete_turn, require_api_key

logger = logging.getLogger(__name__)

_FINISH_REASON_ERRORS: dict[str, ProviderErrorKind] = {
    "MAX_TOKENS": ProviderErrorKind.TRUNCATED,
    "SAFETY": ProviderErrorKind.CONTENT_BLOCKED,
    "BLOCKLIST": ProviderErrorKind.CONTENT_BLOCKED,
    "PROHIBITED_CONTENT": ProviderErrorKind.CONTENT_BLOCKED,
    "SPII": ProviderErrorKind.CONTENT_BLOCKED,
    "RECITATION": ProviderErrorKind.RECITATION_BLOCKED,
}


def _enum_name(value: Any) -> str:
    return str(getattr(value, "value", value) or "")


def _to_content(msg: Message) -> types.Content:
    """Map a history message to Gemini ``Content``, replaying Gemini-written model content verbatim."""
    if (
        msg.role == "assistant"
        and msg.reasoning_details is not None
        and msg.reasoning_provider == GeminiConversation.provider
    ):
        return types.Content.model_validate_json(json.dumps(msg.reasoning_details))
    role = "user" if msg.role == "user" else "model"
    return types.Content(role=role, parts=[types.Part(text=msg.content)])


def build_contents(instruction: str, history: list[Message]) -> list[types.Content]:
    """Prior turns without system entries, then the new instruction as a user turn."""
    contents = [_to_content(msg) for msg in history if msg.role != "system"]
    contents.append(types.Content(role="user", parts=[types.Part(text=instruction)]))
    return contents


class GeminiConversation:
    """Conversation service backed by the Gemini API."""

    provider = "gemini"

    _clients: dict[str, genai.Client] = {}

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id

    @classmethod
    def client(cls, api_key: str) -> genai.Client:
        """Return (or create) the shared client for *api_key*."""
        if api_key not in cls._clients:
            cls._clients[api_key] = genai.Client(api_key=api_key)
            logger.info("Created Gemini client (key …%s)", api_key[-4:])
        return cls._clients[api_key]

    @classmethod
    async def close_all(cls) -> int:
        """Shut down all shared clients. Returns count closed."""
        count = 0
        for client in list(cls._clients.values()):
            try:
                await client.aio.aclose()
            except Exception:
                logger.debug("Gemini async client close failed", exc_info=True)
            count += 1
        cls._clients.clear()
        logger.info("Closed %d Gemini client(s)", count)
        return count

    def _generation_config(self) -> types.GenerateContentConfig:
        cfg = get_config()
        return types.GenerateContentConfig(
            system_instruction=ANIMATION_SYSTEM_PROMPT,
            temperature=cfg.temperature,
            top_k=cfg.top_k,
            top_p=cfg.top_p,
            max_output_tokens=cfg.max_output_tokens,
        )

    async def run(self, instruction: str, history: list[Message]) -> ConversationResult:
        """Run one round against Gemini. See :class:`ConversationService`."""
        cfg = get_config()
        api_key = require_api_key(cfg.gemini_api_key, "GEMINI_API_KEY", "Gemini")
        client = self.client(api_key)

        logger.info("Gemini call: model=%s history=%d", self.model_id, len(history))
        try:
            response = await client.aio.models.generate_content(
                model=self.model_id,
                contents=build_contents(instruction, history),
                config=self._generation_config(),
            )
        except genai_errors.APIError as exc:
            logger.warning("Gemini returned %s: %s", exc.code, exc.message)
            raise classify_http_failure(exc.code, exc.message) from exc
        except httpx.HTTPError as exc:
            raise TransportError(None, f"Could not reach Gemini: {exc}") from exc

        text, model_content = self._validated_reply(response)
        return complete_turn(
            instruction,
            history,
            text,
            reasoning_details=model_content.model_dump(mode="json", exclude_none=True),
            provider=self.provider,
        )

    def _validated_reply(
        self, response: types.GenerateContentResponse
    ) -> tuple[str, types.Content]:
        """Return (visible text, model content) or raise the matching ProviderError."""
        if not response.candidates:
            feedback = response.prompt_feedback
            if feedback is not None and feedback.block_reason:
                logger.error("Gemini blocked the prompt: %s", _enum_name(feedback.block_reason))
                raise ProviderError(ProviderErrorKind.CONTENT_BLOCKED)
            raise ProviderError(
                ProviderErrorKind.EMPTY_RESPONSE,
                "Gemini API returned no candidates. The response may have been blocked.",
            )

        candidate = response.candidates[0]
        reason = _enum_name(candidate.finish_reason)
        if reason and reason != "STOP":
            logger.warning("Unusual Gemini finish reason: %s", reason)
            if reason in _FINISH_REASON_ERRORS:
                raise ProviderError(_FINISH_REASON_ERRORS[reason])

        content = candidate.content
        if content is None or not content.parts:
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE)

        # Thought parts are model-internal; only visible text reaches the parser
        text = "".join(p.text for p in content.parts if p.text and not p.thought)
        return check_reply_text(text), content
