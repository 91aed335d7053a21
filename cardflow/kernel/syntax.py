"""
cardflow Kernel — Syntax Validator

Strict JSON validation with a human-readable hint on failure.

validate_syntax() never raises: whatever the input, it returns a SyntaxReport.
Blank text and the empty object are "valid and empty" (no card yet), which the
pipeline treats differently from malformed text.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from cardflow.kernel.scanner import count_unmatched
from cardflow.kernel.types import SyntaxReport

logger = logging.getLogger(__name__)

_EMPTY_OBJECT_RE = re.compile(r"^\{\s*\}$")

# Python's decoder extension tokens; not JSON.
_CONSTANT_RE = re.compile(r"(?<=[:\[,])\s*(-?(?:NaN|Infinity))")

GENERIC_SUGGESTION = "Check JSON syntax and try again"
INCOMPLETE_SUGGESTION = "JSON appears incomplete. Check for missing closing brackets or braces"

# Keyed on substrings of the low-level decoder message (lower-cased).
# First match wins. "unexpected end" is synthesised when the decoder stopped
# at the end of the input.
_SUGGESTION_RULES: tuple[tuple[str, str], ...] = (
    ("unexpected end", INCOMPLETE_SUGGESTION),
    ("unterminated string", "Close the open string with a double quote"),
    ("expecting property name", "Remove the trailing comma or wrap the property name in double quotes"),
    ("expecting ':' delimiter", "Add a colon between the property name and its value"),
    ("expecting ',' delimiter", "Check for missing commas between values"),
    ("extra data", "Remove the content after the closing brace"),
    ("invalid control character", "Escape control characters such as newlines inside strings"),
    ("invalid \\escape", "Fix the backslash escape sequence"),
    ("invalid literal", "Replace NaN or Infinity with a number or null"),
    ("expecting value", "Unexpected character found. Check for typos or missing punctuation"),
)


class InvalidLiteralError(ValueError):
    """NaN / Infinity / -Infinity met by the strict decoder."""

    def __init__(self, literal: str) -> None:
        super().__init__(f"Invalid literal {literal}")
        self.literal = literal


def _reject_constant(literal: str) -> None:
    raise InvalidLiteralError(literal)


def loads_strict(text: str) -> Any:
    """
    json.loads() without the NaN/Infinity extension.

    Raises:
        json.JSONDecodeError: malformed text
        InvalidLiteralError: a non-JSON numeric constant
    """
    return json.loads(text, parse_constant=_reject_constant)


def is_empty_input(text: str | None) -> bool:
    """Blank text or `{}` means "no card yet"."""
    if text is None:
        return True
    stripped = text.strip()
    return stripped == "" or bool(_EMPTY_OBJECT_RE.match(stripped))


def validate_syntax(text: str | None) -> SyntaxReport:
    """
    Strictly parse `text` and describe any failure.

    Returns:
        SyntaxReport with is_valid, is_empty, and on failure an error message,
        a character position (from the decoder, else end of input) and a
        suggestion.
    """
    if is_empty_input(text):
        return SyntaxReport(is_valid=True, is_empty=True)

    try:
        loads_strict(text)
        return SyntaxReport(is_valid=True)
    except InvalidLiteralError as exc:
        match = _CONSTANT_RE.search(text)
        return SyntaxReport(
            is_valid=False,
            error=str(exc),
            position=match.start(1) if match else len(text),
            suggestion=suggest_fix(str(exc), text),
        )
    except json.JSONDecodeError as exc:
        at_end = exc.pos >= len(text.rstrip())
        reason = "unexpected end of input" if at_end else exc.msg
        return SyntaxReport(
            is_valid=False,
            error=str(exc),
            position=exc.pos,
            suggestion=suggest_fix(reason, text),
        )
    except (RecursionError, ValueError, TypeError) as exc:
        # Pathological nesting or non-string input; no offset available.
        logger.debug("syntax: non-decoder failure %s", type(exc).__name__)
        length = len(text) if isinstance(text, str) else 0
        return SyntaxReport(
            is_valid=False,
            error="Invalid JSON syntax",
            position=length,
            suggestion=GENERIC_SUGGESTION,
        )


def suggest_fix(error_message: str, text: str) -> str:
    """
    Pick a suggestion for a decoder error message.

    Falls back to counting unmatched `{` / `[` outside strings and reporting the
    exact deficit when no rule matches.
    """
    lowered = error_message.lower()
    for needle, suggestion in _SUGGESTION_RULES:
        if needle in lowered:
            if needle == "unexpected end":
                return describe_deficit(text) or suggestion
            return suggestion
    return describe_deficit(text) or GENERIC_SUGGESTION


def describe_deficit(text: str) -> str:
    """
    "Missing 2 closing braces", "Missing 1 closing bracket and 1 closing brace", or "".
    """
    try:
        braces, brackets = count_unmatched(text)
    except Exception:
        logger.debug("syntax: deficit count failed", exc_info=True)
        return ""
    parts = []
    if brackets:
        parts.append(f"{brackets} closing bracket{'s' if brackets != 1 else ''}")
    if braces:
        parts.append(f"{braces} closing brace{'s' if braces != 1 else ''}")
    if not parts:
        return ""
    return "Missing " + " and ".join(parts)


def format_json(text: str) -> str:
    """
    Pretty-print valid JSON with 2-space indentation and a trailing newline.
    Invalid or empty text is returned unchanged.
    """
    try:
        parsed = loads_strict(text)
    except (ValueError, TypeError, RecursionError):
        return text
    return json.dumps(parsed, indent=2, ensure_ascii=False) + "\n"
