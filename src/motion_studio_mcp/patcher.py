"""Rewrite one literal inside the generated ``PARAMS`` block.

Slider and colour-picker changes are applied to the stored source text
directly, without another model call. The ``PARAMS`` object literal is located
and walked with a small tokenizer that understands strings, template literals
and comments, so braces or commas inside string values cannot confuse it.
Everything outside the replaced value is preserved byte-for-byte.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterator
from dataclasses import dataclass

from .models.animation import PropertyValue
from .prompts.animation import PARAMS_IDENTIFIER

logger = logging.getLogger(__name__)

_DECLARATION = re.compile(rf"(?:const|let|var)\s+{PARAMS_IDENTIFIER}\s*=\s*\{{")
_KEY = re.compile(r"[A-Za-z0-9_$]+")
_IDENT_CHARS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_$")
_OPENERS = {"{": "}", "[": "]", "(": ")"}
_CLOSERS = frozenset(_OPENERS.values())


@dataclass(frozen=True)
class _Token:
    start: int
    end: int
    char: str | None  # None for a whole string/template literal


@dataclass(frozen=True)
class ParamsBlock:
    """Location of the ``PARAMS`` declaration inside a source text."""

    start: int
    open_brace: int
    close_brace: int
    end: int


@dataclass(frozen=True)
class _Entry:
    key: str
    value_start: int
    value_end: int


def _string_end(code: str, i: int) -> int:
    quote = code[i]
    i += 1
    while i < len(code):
        ch = code[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return len(code)


def _comment_end(code: str, i: int) -> int | None:
    if code.startswith("//", i):
        end = code.find("\n", i)
        return len(code) if end == -1 else end
    if code.startswith("/*", i):
        end = code.find("*/", i + 2)
        return len(code) if end == -1 else end + 2
    return None


def _tokens(code: str, start: int = 0, stop: int | None = None) -> Iterator[_Token]:
    """Yield non-whitespace tokens, skipping comments; strings come out whole."""
    stop = len(code) if stop is None else stop
    i = start
    while i < stop:
        ch = code[i]
        if ch.isspace():
            i += 1
            continue
        if ch in "'\"`":
            end = _string_end(code, i)
            yield _Token(i, end, None)
            i = end
            continue
        if ch == "/":
            end = _comment_end(code, i)
            if end is not None:
                i = end
                continue
        yield _Token(i, i + 1, ch)
        i += 1


def _matching_brace(code: str, open_brace: int) -> int | None:
    depth = 0
    for tok in _tokens(code, open_brace):
        if tok.char == "{":
            depth += 1
        elif tok.char == "}":
            depth -= 1
            if depth == 0:
                return tok.start
    return None


def find_params_block(code: str) -> ParamsBlock | None:
    """Find the first top-level ``PARAMS = { ... };`` declaration, if any."""
    depth = 0
    for tok in _tokens(code):
        if tok.char is None:
            continue
        if tok.char in _OPENERS:
            depth += 1
            continue
        if tok.char in _CLOSERS:
            depth = max(depth - 1, 0)
            continue
        if depth or (tok.start and code[tok.start - 1] in _IDENT_CHARS):
            continue
        match = _DECLARATION.match(code, tok.start)
        if not match:
            continue
        open_brace = match.end() - 1
        close_brace = _matching_brace(code, open_brace)
        if close_brace is None:
            return None
        after = next(_tokens(code, close_brace + 1), None)
        if after is not None and after.char == ";":
            return ParamsBlock(tok.start, open_brace, close_brace, after.end)
    return None


def _split_entries(code: str, block: ParamsBlock) -> list[list[_Token]]:
    entries: list[list[_Token]] = [[]]
    depth = 0
    for tok in _tokens(code, block.open_brace + 1, block.close_brace):
        if tok.char in _OPENERS:
            depth += 1
        elif tok.char in _CLOSERS:
            depth -= 1
        elif tok.char == "," and depth == 0:
            entries.append([])
            continue
        entries[-1].append(tok)
    return [toks for toks in entries if toks]


def _parse_entry(code: str, toks: list[_Token]) -> _Entry | None:
    first = toks[0]
    if first.char is None:
        key = code[first.start + 1 : first.end - 1]
        key_end = first.end
    else:
        match = _KEY.match(code, first.start)
        if not match:
            return None  # spread or computed key
        key, key_end = match.group(0), match.end()

    rest = [t for t in toks if t.start >= key_end]
    if not rest or rest[0].char != ":" or len(rest) < 2:
        return None  # shorthand or method
    return _Entry(key, rest[1].start, rest[-1].end)


def _entries(code: str, block: ParamsBlock) -> list[_Entry]:
    parsed = (_parse_entry(code, toks) for toks in _split_entries(code, block))
    return [entry for entry in parsed if entry is not None]


def read_param_literals(code: str) -> dict[str, str]:
    """Map each ``PARAMS`` key to its literal source text (empty when no block)."""
    block = find_params_block(code)
    if block is None:
        return {}
    return {entry.key: code[entry.value_start : entry.value_end] for entry in _entries(code, block)}


def format_literal(value: PropertyValue) -> str:
    """Render *value* as a JavaScript literal.

    Strings (hex colours included) get single quotes, booleans become
    ``true``/``false``, numbers use their shortest textual form.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return str(int(value)) if value.is_integer() else repr(value)
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


def apply_property_change(code: str, property_id: str, new_value: PropertyValue) -> str:
    """Return *code* with ``PARAMS[property_id]`` set to *new_value*.

    Only the matched value's text changes. A missing ``PARAMS`` block or key
    returns *code* unchanged.
    """
    block = find_params_block(code)
    if block is None:
        logger.debug("No %s block found; property '%s' not applied", PARAMS_IDENTIFIER, property_id)
        return code

    for entry in _entries(code, block):
        if entry.key == property_id:
            literal = format_literal(new_value)
            return code[: entry.value_start] + literal + code[entry.value_end :]

    logger.debug("Key '%s' not found in %s block", property_id, PARAMS_IDENTIFIER)
    return code
