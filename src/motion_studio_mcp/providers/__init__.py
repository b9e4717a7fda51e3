"""Provider-specific conversation services behind one capability interface."""

from __future__ import annotations

from .base import ConversationService
from .gemini import GeminiConversation
from .openrouter import OpenRouterConversation

__all__ = ["ConversationService", "GeminiConversation", "OpenRouterConversation"]
