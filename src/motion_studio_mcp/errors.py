"""Error taxonomy for generation turns plus the structured tool error model.

Every failure a generation turn can hit is a :class:`MotionStudioError`
subclass whose ``str()`` is the message shown to the user. Tool entrypoints
turn any exception into a serialisable :class:`ToolError` dict via
:func:`make_tool_error`.
"""

from __future__ import annotations

from enum import Enum

import httpx
from pydantic import BaseModel


class MotionStudioError(Exception):
    """Base class for every failure surfaced to a session."""


class ConfigurationError(MotionStudioError):
    """Missing credential or unknown model key. Raised before any network call."""


class TransportError(MotionStudioError):
    """Non-success HTTP status (or network failure) not otherwise classified."""

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class ProviderErrorKind(str, Enum):
    """Distinguishable provider failures, each with its own user-facing message."""

    RATE_LIMITED = "RATE_LIMITED"
    QUOTA_EXHAUSTED = "QUOTA_EXHAUSTED"
    MALFORMED_REQUEST = "MALFORMED_REQUEST"
    CONTENT_BLOCKED = "CONTENT_BLOCKED"
    TRUNCATED = "TRUNCATED"
    RECITATION_BLOCKED = "RECITATION_BLOCKED"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    SHORT_RESPONSE = "SHORT_RESPONSE"


PROVIDER_MESSAGES: dict[ProviderErrorKind, str] = {
    ProviderErrorKind.RATE_LIMITED: (
        "Rate limit exceeded. Please wait a moment and try again, or try a different model."
    ),
    ProviderErrorKind.QUOTA_EXHAUSTED: (
        "This model requires payment or credits. Try a free model instead, "
        "or add credits to your provider account."
    ),
    ProviderErrorKind.MALFORMED_REQUEST: "Invalid request. Please try a different prompt.",
    ProviderErrorKind.CONTENT_BLOCKED: (
        "Response was blocked by safety filters. Try rephrasing your prompt."
    ),
    ProviderErrorKind.TRUNCATED: (
        "Response was truncated due to length. Try simplifying your prompt "
        "or the animation will be incomplete."
    ),
    ProviderErrorKind.RECITATION_BLOCKED: (
        "Response was blocked due to recitation. Try a more original prompt."
    ),
    ProviderErrorKind.EMPTY_RESPONSE: (
        "The model returned no content. The response may have been blocked."
    ),
    ProviderErrorKind.SHORT_RESPONSE: (
        "The model returned an unusually short response. Please try again."
    ),
}


class ProviderError(MotionStudioError):
    """A classified provider failure; ``kind`` tells which one."""

    def __init__(
        self,
        kind: ProviderErrorKind,
        message: str | None = None,
        *,
        status: int | None = None,
    ) -> None:
        self.kind = kind
        self.status = status
        self.message = message or PROVIDER_MESSAGES[kind]
        super().__init__(self.message)


class ParseError(MotionStudioError):
    """A structurally valid reply that contained no extractable code."""

    def __init__(self, message: str = "no code found", *, raw_text: str = "") -> None:
        super().__init__(
            "Failed to parse AI response: the model did not return code "
            f"in the expected format ({message})."
        )
        self.reason = message
        self.raw_text = raw_text


def classify_http_failure(status: int, detail: str | None = None) -> MotionStudioError:
    """Map a non-success status code to the error a turn should raise.

    Rate limiting, payment/quota exhaustion and malformed requests become
    :class:`ProviderError` kinds. Provider detail text is appended to the
    rate/quota messages and replaces the generic text for malformed requests
    and unclassified statuses.
    """
    detail = (detail or "").strip() or None
    if status in (429, 402):
        kind = ProviderErrorKind.RATE_LIMITED if status == 429 else ProviderErrorKind.QUOTA_EXHAUSTED
        message = PROVIDER_MESSAGES[kind]
        if detail:
            message = f"{message} ({detail})"
        return ProviderError(kind, message, status=status)
    if status == 400:
        return ProviderError(ProviderErrorKind.MALFORMED_REQUEST, detail, status=status)
    return TransportError(status, detail or f"API request failed with status {status}")


# ── Tool-level error model ───────────────────────────────────────────────────


class ErrorCategory(str, Enum):
    """Categories of errors for diagnostics."""

    CONFIG_ERROR = "CONFIG_ERROR"
    API_RATE_LIMITED = "API_RATE_LIMITED"
    API_QUOTA_EXCEEDED = "API_QUOTA_EXCEEDED"
    API_INVALID_ARGUMENT = "API_INVALID_ARGUMENT"
    RESPONSE_BLOCKED = "RESPONSE_BLOCKED"
    RESPONSE_INCOMPLETE = "RESPONSE_INCOMPLETE"
    CODE_EXTRACTION_FAILED = "CODE_EXTRACTION_FAILED"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


class ToolError(BaseModel):
    """Structured error returned from any tool."""

    error: str
    category: str
    hint: str
    retryable: bool = False


_PROVIDER_CATEGORIES: dict[ProviderErrorKind, tuple[ErrorCategory, str]] = {
    ProviderErrorKind.RATE_LIMITED: (
        ErrorCategory.API_RATE_LIMITED,
        "Wait a moment and resubmit, or pick another model",
    ),
    ProviderErrorKind.QUOTA_EXHAUSTED: (
        ErrorCategory.API_QUOTA_EXCEEDED,
        "Model needs credits — switch to a free model or top up the provider account",
    ),
    ProviderErrorKind.MALFORMED_REQUEST: (
        ErrorCategory.API_INVALID_ARGUMENT,
        "Provider rejected the request — rephrase the prompt",
    ),
    ProviderErrorKind.CONTENT_BLOCKED: (
        ErrorCategory.RESPONSE_BLOCKED,
        "Provider safety filter blocked the reply — rephrase the prompt",
    ),
    ProviderErrorKind.RECITATION_BLOCKED: (
        ErrorCategory.RESPONSE_BLOCKED,
        "Reply blocked for recitation — ask for something more original",
    ),
    ProviderErrorKind.TRUNCATED: (
        ErrorCategory.RESPONSE_INCOMPLETE,
        "Reply hit the output token limit — simplify the animation",
    ),
    ProviderErrorKind.EMPTY_RESPONSE: (
        ErrorCategory.RESPONSE_INCOMPLETE,
        "Provider returned nothing usable — resubmit",
    ),
    ProviderErrorKind.SHORT_RESPONSE: (
        ErrorCategory.RESPONSE_INCOMPLETE,
        "Provider returned a stub reply — resubmit",
    ),
}


def categorize_error(error: Exception) -> tuple[ErrorCategory, str]:
    """Map an exception to an ErrorCategory + human-readable hint."""
    if isinstance(error, ProviderError):
        return _PROVIDER_CATEGORIES[error.kind]
    if isinstance(error, ConfigurationError):
        return (
            ErrorCategory.CONFIG_ERROR,
            "Set OPENROUTER_API_KEY / GEMINI_API_KEY and pick a model from animation_models",
        )
    if isinstance(error, ParseError):
        return (
            ErrorCategory.CODE_EXTRACTION_FAILED,
            "Model reply had no [CODE] block, fenced block or Animation function — resubmit",
        )
    if isinstance(error, KeyError):
        return (
            ErrorCategory.SESSION_NOT_FOUND,
            "Session expired or unknown — start over with animation_generate",
        )
    if isinstance(error, (TimeoutError, httpx.TimeoutException, httpx.NetworkError)):
        return (
            ErrorCategory.NETWORK_ERROR,
            "Request timed out or could not connect — try again or check connectivity",
        )
    if isinstance(error, TransportError):
        if error.status is None:
            return (ErrorCategory.NETWORK_ERROR, "Could not reach the provider — try again")
        return (ErrorCategory.UNKNOWN, f"Provider answered with HTTP {error.status}")
    if isinstance(error, ValueError):
        return (ErrorCategory.API_INVALID_ARGUMENT, "Bad input — check parameter values")
    return (ErrorCategory.UNKNOWN, str(error))


def make_tool_error(error: Exception) -> dict:
    """Create a serialisable ToolError dict from an exception."""
    cat, hint = categorize_error(error)
    retryable = cat in {
        ErrorCategory.API_RATE_LIMITED,
        ErrorCategory.RESPONSE_INCOMPLETE,
        ErrorCategory.CODE_EXTRACTION_FAILED,
        ErrorCategory.NETWORK_ERROR,
    }
    # KeyError str() wraps the message in quotes
    message = error.args[0] if isinstance(error, KeyError) and error.args else str(error)
    return ToolError(
        error=str(message),
        category=cat.value,
        hint=hint,
        retryable=retryable,
    ).model_dump(mode="json")
