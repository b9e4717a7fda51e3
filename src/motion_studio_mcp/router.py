"""Static model registry and provider lookup."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from .config import get_config
from .errors import ConfigurationError
from .models.animation import ModelInfo
from .providers import ConversationService, GeminiConversation, OpenRouterConversation

Provider = Literal["openrouter", "gemini"]


@dataclass(frozen=True)
class ModelSpec:
    """One selectable model: which provider serves it and under which id."""

    key: str
    provider: Provider
    model_id: str
    display_name: str


MODEL_REGISTRY: dict[str, ModelSpec] = {
    spec.key: spec
    for spec in (
        ModelSpec("gpt-oss-120b", "openrouter", "openai/gpt-oss-120b:free", "GPT OSS 120b"),
        ModelSpec("qwen3-coder", "openrouter", "qwen/qwen3-coder:free", "Qwen 3 Coder"),
        ModelSpec("glm-4.5-air", "openrouter", "z-ai/glm-4.5-air:free", "GLM 4.5 Air"),
        ModelSpec("deepseek-r1", "openrouter", "deepseek/deepseek-r1-0528:free", "Deepseek R1"),
        ModelSpec("kimi-k2", "openrouter", "moonshotai/kimi-k2:free", "Kimi K2"),
        ModelSpec("gemini-2.5-flash", "gemini", "gemini-2.5-flash", "Gemini 2.5 Flash"),
    )
}

_FACTORIES: dict[str, Callable[[str], ConversationService]] = {
    "openrouter": OpenRouterConversation,
    "gemini": GeminiConversation,
}


def get_spec(model_key: str) -> ModelSpec:
    """Look up *model_key* in the registry.

    Raises:
        ConfigurationError: If the key is not registered.
    """
    try:
        return MODEL_REGISTRY[model_key]
    except KeyError:
        allowed = ", ".join(MODEL_REGISTRY)
        raise ConfigurationError(f"Unknown model '{model_key}'. Allowed: {allowed}") from None


def resolve(model_key: str) -> ConversationService:
    """Return the conversation service for *model_key*.

    The Gemini entry honours ``GEMINI_MODEL`` so a newer Gemini release can be
    swapped in without a code change.
    """
    spec = get_spec(model_key)
    model_id = spec.model_id
    if spec.provider == "gemini":
        model_id = get_config().gemini_model or model_id
    return _FACTORIES[spec.provider](model_id)


def list_models() -> list[ModelInfo]:
    """Display metadata for every registered model, in registry order."""
    return [
        ModelInfo(key=s.key, name=s.display_name, provider=s.provider, model_id=s.model_id)
        for s in MODEL_REGISTRY.values()
    ]
