"""OpenRouter chat-completions conversation service (OpenAI-compatible JSON over httpx)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import get_config
from ..errors import ProviderError, ProviderErrorKind, TransportError, classify_http_failure
from ..models.animation import ConversationResult, Message
from ..prompts.animation import ANIMATION_SYSTEM_PROMPT
from .base import check_reply_text, complete_turn, require_api_key

logger = logging.getLogger(__name__)

_FINISH_REASON_ERRORS: dict[str, ProviderErrorKind] = {
    "length": ProviderErrorKind.TRUNCATED,
    "content_filter": ProviderErrorKind.CONTENT_BLOCKED,
}


def _error_detail(response: httpx.Response) -> str | None:
    """Pull ``error.message`` out of a failed response body, if it has one."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        return str(message) if message else None
    return None


def build_messages(instruction: str, history: list[Message]) -> list[dict[str, Any]]:
    """System contract once, prior turns (with reasoning replay), then the new instruction."""
    messages: list[dict[str, Any]] = [{"role": "system", "content": ANIMATION_SYSTEM_PROMPT}]
    for msg in history:
        if msg.role == "system":
            continue
        entry: dict[str, Any] = {"role": msg.role, "content": msg.content}
        replay = msg.reasoning_provider == OpenRouterConversation.provider
        if replay and msg.reasoning_details is not None:
            entry["reasoning_details"] = msg.reasoning_details
        messages.append(entry)
    messages.append({"role": "user", "content": instruction})
    return messages


class OpenRouterConversation:
    """Conversation service for any model routed through OpenRouter."""

    provider = "openrouter"

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id

    def _headers(self, api_key: str) -> dict[str, str]:
        cfg = get_config()
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": cfg.openrouter_referer,
            "X-Title": cfg.openrouter_app_title,
        }

    async def run(self, instruction: str, history: list[Message]) -> ConversationResult:
        """Run one round against OpenRouter. See :class:`ConversationService`."""
        cfg = get_config()
        api_key = require_api_key(cfg.openrouter_api_key, "OPENROUTER_API_KEY", "OpenRouter")
        payload = {
            "model": self.model_id,
            "messages": build_messages(instruction, history),
            "reasoning": {"enabled": True},
        }

        logger.info(
            "OpenRouter call: model=%s history=%d key=…%s",
            self.model_id,
            len(history),
            api_key[-4:],
        )
        try:
            async with httpx.AsyncClient(timeout=cfg.request_timeout_seconds) as client:
                response = await client.post(
                    cfg.openrouter_api_url,
                    json=payload,
                    headers=self._headers(api_key),
                )
        except httpx.HTTPError as exc:
            raise TransportError(None, f"Could not reach OpenRouter: {exc}") from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("OpenRouter returned %d: %s", response.status_code, detail)
            raise classify_http_failure(response.status_code, detail)

        try:
            result = response.json()
        except ValueError as exc:
            raise ProviderError(
                ProviderErrorKind.EMPTY_RESPONSE, "OpenRouter returned a non-JSON body."
            ) from exc

        choices = result.get("choices") if isinstance(result, dict) else None
        if (
            not isinstance(choices, list)
            or not choices
            or not isinstance(choices[0], dict)
            or not isinstance(choices[0].get("message"), dict)
        ):
            logger.error("OpenRouter reply has no choices: %r", result)
            raise ProviderError(ProviderErrorKind.EMPTY_RESPONSE)

        choice = choices[0]
        finish_reason = choice.get("finish_reason")
        if finish_reason in _FINISH_REASON_ERRORS:
            logger.warning("OpenRouter finish_reason=%s", finish_reason)
            raise ProviderError(_FINISH_REASON_ERRORS[finish_reason])

        message = choice["message"]
        text = check_reply_text(message.get("content"))
        return complete_turn(
            instruction,
            history,
            text,
            reasoning_details=message.get("reasoning_details"),
            provider=self.provider,
        )
