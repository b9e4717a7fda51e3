"""Turn a raw model reply into code, stylesheet and property schema.

Replies are untrusted free text. Strategies are tried in a fixed order and the
first one that yields code wins:

1. ``[CODE]``/``[CSS]``/``[PROPERTIES]`` delimited blocks (the requested format).
2. Markdown fences: a ``css`` fence is the stylesheet, the last other fence is the code.
3. A bare ``function Animation(...) { ... }`` definition.

A reply that defeats all three raises :class:`ParseError`; empty code is never
returned. A broken ``[PROPERTIES]`` block only costs the parameter list.
"""

from __future__ import annotations

import json
import logging
import re

from pydantic import TypeAdapter, ValidationError

from .errors import ParseError
from .models.animation import ParsedResponse, PropertySchema, ensure_unique_ids

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"\[CODE\]([\s\S]*?)\[/CODE\]")
_CSS_BLOCK = re.compile(r"\[CSS\]([\s\S]*?)\[/CSS\]")
_PROPERTIES_BLOCK = re.compile(r"\[PROPERTIES\]([\s\S]*?)\[/PROPERTIES\]")
_FENCE = re.compile(r"```([\s\S]*?)```")
_FENCE_TAG = re.compile(r"[\w+#.-]*")
_BARE_FUNCTION = re.compile(
    r"function\s+Animation\s*\([^)]*\)\s*\{[\s\S]*?^\}[ \t]*$",
    re.MULTILINE,
)

_properties_adapter = TypeAdapter(list[PropertySchema])

_PREVIEW_CHARS = 800


def _explanation(raw_text: str, marker: str) -> str | None:
    return raw_text.split(marker, 1)[0].strip() or None


def parse_properties(raw_text: str) -> list[PropertySchema]:
    """Decode the ``[PROPERTIES]`` block, or return ``[]`` when absent or invalid."""
    match = _PROPERTIES_BLOCK.search(raw_text)
    if not match:
        return []
    try:
        decoded = json.loads(match.group(1).strip())
        return ensure_unique_ids(_properties_adapter.validate_python(decoded))
    except (json.JSONDecodeError, ValidationError, ValueError) as exc:
        logger.warning("Failed to parse properties schema, continuing without: %s", exc)
        return []


def _split_fence(inner: str) -> tuple[str, str]:
    """Split fence contents into (language tag, body).

    The first line only counts as a tag when it is a single word; a fence that
    opens straight into code keeps that line in the body.
    """
    first, newline, rest = inner.partition("\n")
    if newline and _FENCE_TAG.fullmatch(first.strip()):
        return first.strip().lower(), rest
    return "", inner


def _from_delimited(raw_text: str) -> ParsedResponse | None:
    match = _CODE_BLOCK.search(raw_text)
    if not match:
        return None
    code = match.group(1).strip()
    if not code:
        return None
    css_match = _CSS_BLOCK.search(raw_text)
    return ParsedResponse(
        code=code,
        stylesheet=css_match.group(1).strip() if css_match else "",
        explanation=_explanation(raw_text, "[CODE]"),
        parameters=parse_properties(raw_text),
    )


def _from_fences(raw_text: str) -> ParsedResponse | None:
    blocks = _FENCE.findall(raw_text)
    if not blocks:
        return None
    logger.debug("Found %d fenced block(s)", len(blocks))

    code = ""
    stylesheet = ""
    for inner in blocks:
        tag, body = _split_fence(inner)
        body = body.strip()
        if not body:
            continue
        if tag == "css":
            stylesheet = body
        else:
            code = body

    if not code:
        return None
    return ParsedResponse(
        code=code,
        stylesheet=stylesheet,
        explanation=_explanation(raw_text, "```"),
        parameters=parse_properties(raw_text),
    )


def _from_bare_function(raw_text: str) -> ParsedResponse | None:
    match = _BARE_FUNCTION.search(raw_text)
    if not match:
        return None
    return ParsedResponse(
        code=match.group(0),
        stylesheet="",
        explanation=None,
        parameters=parse_properties(raw_text),
    )


_STRATEGIES = (
    ("delimited", _from_delimited),
    ("fenced", _from_fences),
    ("bare-function", _from_bare_function),
)


def parse_response(raw_text: str) -> ParsedResponse:
    """Extract code, stylesheet, explanation and parameters from *raw_text*.

    Raises:
        ParseError: When no strategy recovers any code. ``raw_text`` is kept
            on the exception for diagnostics.
    """
    logger.debug("Parsing reply (%d chars)", len(raw_text))
    for name, strategy in _STRATEGIES:
        parsed = strategy(raw_text)
        if parsed is not None:
            logger.info(
                "Extracted code via %s strategy (%d chars code, %d chars css, %d properties)",
                name,
                len(parsed.code),
                len(parsed.stylesheet),
                len(parsed.parameters),
            )
            return parsed

    logger.error("Failed to parse reply; preview: %r", raw_text[:_PREVIEW_CHARS])
    raise ParseError("no code found", raw_text=raw_text)
