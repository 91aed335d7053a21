"""
cardflow Kernel — Partial Recovery Parser

Rebuilds a usable object from text that failed strict parsing, typically a
card that is still streaming in. Strategies run in order and each is only
attempted if the previous one produced nothing:

  1. strip trailing commas before `}` / `]`
  2. close an open string and append the missing closers
  3. strict-parse the repaired text (objects only, never arrays)
  4. structural extraction: pull a title out on its own, then carve every
     complete object out of the `"sections": [` array and parse each one
     independently; a final still-open object gets the same close-and-repair
     treatment
  5. give up (None) only when neither a title nor any section survived

Recovery is lossy but never corrupting: a candidate that does not parse is
dropped whole. Any exception inside a strategy means "this strategy failed,
try the next"; recover_partial() itself never raises.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from cardflow.kernel.scanner import close_open_structures, iter_top_level_objects, strip_trailing_commas
from cardflow.kernel.syntax import loads_strict
from cardflow.kernel.types import RecoveryResult

logger = logging.getLogger(__name__)

_JSON_STRING = r'"((?:[^"\\]|\\.)*)"'
_CARD_TITLE_RE = re.compile(r'"cardTitle"\s*:\s*' + _JSON_STRING)
_TITLE_RE = re.compile(r'"title"\s*:\s*' + _JSON_STRING)
_CARD_SUBTITLE_RE = re.compile(r'"cardSubtitle"\s*:\s*' + _JSON_STRING)
_CARD_TYPE_RE = re.compile(r'"cardType"\s*:\s*' + _JSON_STRING)
_SECTIONS_MARKER_RE = re.compile(r'"sections"\s*:\s*\[')


def recover_partial(text: str) -> RecoveryResult | None:
    """
    Best-effort reconstruction of a card object from incomplete JSON.

    Args:
        text: Raw text that failed strict parsing

    Returns:
        RecoveryResult with the recovered dict, or None when nothing usable
        (no title and no section) could be found
    """
    if not text or not text.strip():
        return None

    try:
        balanced = _recover_by_balancing(text)
    except Exception:
        logger.debug("recovery: balancing strategy raised", exc_info=True)
        balanced = None
    if balanced is not None:
        return balanced

    try:
        extracted = _recover_by_extraction(text)
    except Exception:
        logger.debug("recovery: extraction strategy raised", exc_info=True)
        extracted = None
    if extracted is not None:
        return extracted

    logger.debug("recovery: exhausted for %d chars of input", len(text))
    return None


# ---------------------------------------------------------------------------
# Strategies 1-3: repair then strict parse
# ---------------------------------------------------------------------------


def _recover_by_balancing(text: str) -> RecoveryResult | None:
    notes: list[str] = []
    sanitized = text.strip()

    stripped = strip_trailing_commas(sanitized)
    if stripped != sanitized:
        notes.append("stripped trailing commas")

    repaired, close_notes = close_open_structures(stripped)
    notes.extend(close_notes)

    parsed = _loads_object(repaired)
    if parsed is None:
        return None
    return RecoveryResult(data=parsed, strategy="balance", notes=tuple(notes))


def _loads_object(text: str) -> dict[str, Any] | None:
    """Strict parse that only accepts a JSON object."""
    try:
        parsed = loads_strict(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


# ---------------------------------------------------------------------------
# Strategy 4: structural extraction
# ---------------------------------------------------------------------------


def _recover_by_extraction(text: str) -> RecoveryResult | None:
    data: dict[str, Any] = {}
    notes: list[str] = []

    marker = _SECTIONS_MARKER_RE.search(text)
    header = text[: marker.start()] if marker else text

    title = extract_title(text, header)
    if title is not None:
        data["cardTitle"] = title
        notes.append("extracted title")

    # Subtitle/type only count when they sit before the sections array.
    for key, pattern in (("cardSubtitle", _CARD_SUBTITLE_RE), ("cardType", _CARD_TYPE_RE)):
        value = _match_string(pattern, header)
        if value is not None:
            data[key] = value

    if marker:
        sections, dropped = extract_sections(text, marker.end())
        if sections:
            data["sections"] = sections
            notes.append(f"extracted {len(sections)} section(s)")
        if dropped:
            notes.append(f"dropped {dropped} unparseable section candidate(s)")

    if "cardTitle" not in data and not data.get("sections"):
        return None
    return RecoveryResult(data=data, strategy="extract", notes=tuple(notes))


def extract_title(text: str, header: str | None = None) -> str | None:
    """
    Find a card title without parsing the document.

    `cardTitle` anywhere wins; otherwise a plain `title` counts only if it
    appears in the header, before the sections array, so a section title is
    never mistaken for the card's.
    """
    title = _match_string(_CARD_TITLE_RE, text)
    if title is not None:
        return title
    return _match_string(_TITLE_RE, header if header is not None else text)


def extract_sections(text: str, start: int) -> tuple[list[dict[str, Any]], int]:
    """
    Parse every complete object in the array body beginning at `start`.

    Returns:
        (sections, dropped_count)
    """
    sections: list[dict[str, Any]] = []
    dropped = 0
    for candidate in iter_top_level_objects(text, start):
        if candidate.complete:
            parsed = _loads_object(candidate.text)
            if parsed is None:
                parsed = _loads_object(close_open_structures(strip_trailing_commas(candidate.text))[0])
        else:
            repaired, _ = close_open_structures(strip_trailing_commas(candidate.text))
            parsed = _loads_object(repaired)
        if parsed is None:
            dropped += 1
            continue
        sections.append(parsed)
    return sections, dropped


def _match_string(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    if not match:
        return None
    raw = match.group(1)
    try:
        return json.loads(f'"{raw}"')
    except ValueError:
        return raw
