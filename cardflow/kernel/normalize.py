"""
cardflow Kernel — Card Normalizer

Turns a raw parsed dict (strict or recovered) into a frozen CardConfig.

Pure and deterministic: the same dict always yields the same card, ids
included. Ids are derived from titles/labels rather than from clocks or random
numbers so that re-parsing a streamed card keeps section identity stable,
which the differ relies on.

Strict mode raises StructuralError when required top-level fields are missing;
partial mode (recovered input) tolerates them.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from pydantic import ValidationError

from cardflow.kernel.errors import StructuralError
from cardflow.kernel.models import (
    Action,
    CardConfig,
    ContactField,
    GenericField,
    ListItem,
    MapPoint,
    MetricField,
    Section,
    ValueField,
)
from cardflow.kernel.types import GENERIC_SECTION_TYPE, SECTION_TYPES

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_SECTIONS = 20
MAX_ACTIONS = 10
MAX_SLUG_LENGTH = 48

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9]+")

_TYPE_ALIASES: dict[str, str] = {
    "contacts": "contact-card",
    "contact_card": "contact-card",
    "network": "network-card",
    "location": "locations",
    "metric": "metrics",
    "charts": "chart",
    "events": "event",
    "quote": "quotation",
}

_MAP_KEYS = ("lat", "lng", "latitude", "longitude", "address", "coordinates")
_METRIC_KEYS = ("change", "trend", "percentage")
_TRENDS = {"up", "down", "neutral"}


# ---------------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------------


def slugify(value: Any) -> str:
    """Lowercase ASCII slug, `[a-z0-9_]`, at most 48 chars. Empty for empty input."""
    text = str(value or "").lower()
    slug = _SLUG_STRIP_RE.sub("_", text).strip("_")
    return slug[:MAX_SLUG_LENGTH].rstrip("_")


def _unique(candidate: str, taken: set[str]) -> str:
    if candidate not in taken:
        taken.add(candidate)
        return candidate
    n = 2
    while f"{candidate}_{n}" in taken:
        n += 1
    result = f"{candidate}_{n}"
    taken.add(result)
    return result


def _given_id(raw: dict[str, Any]) -> str | None:
    value = raw.get("id")
    if isinstance(value, (str, int)) and not isinstance(value, bool) and str(value).strip():
        return str(value).strip()
    return None


# ---------------------------------------------------------------------------
# Structural check
# ---------------------------------------------------------------------------


def check_structure(data: Any) -> list[str]:
    """
    Return the list of structural problems for a strictly parsed value.
    Empty list = structurally acceptable.
    """
    if not isinstance(data, dict):
        return ["Card configuration must be a JSON object"]
    problems = []
    title = data.get("cardTitle", data.get("title"))
    if title is None:
        problems.append("Missing required field: cardTitle")
    elif not isinstance(title, str):
        problems.append("Field cardTitle must be a string")
    sections = data.get("sections")
    if sections is None:
        problems.append("Missing required field: sections")
    elif not isinstance(sections, list):
        problems.append("Field sections must be an array")
    return problems


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_card(data: Any, *, partial: bool = False) -> CardConfig:
    """
    Build a CardConfig from a parsed dict.

    Args:
        data: Parsed JSON value
        partial: True for recovered input; missing title/sections are tolerated

    Raises:
        StructuralError: strict mode and the value lacks required fields
    """
    if partial:
        if not isinstance(data, dict):
            raise StructuralError("Card configuration must be a JSON object")
    else:
        problems = check_structure(data)
        if problems:
            raise StructuralError("; ".join(problems))

    title = _text(data.get("cardTitle", data.get("title"))) or ""
    title = title[:MAX_TITLE_LENGTH]

    raw_id = _given_id(data)
    card_id = raw_id or f"card_{slugify(title) or 'untitled'}"

    raw_sections = data.get("sections")
    if not isinstance(raw_sections, list):
        raw_sections = []
    if len(raw_sections) > MAX_SECTIONS:
        logger.info("normalize: truncating %d sections to %d", len(raw_sections), MAX_SECTIONS)

    taken: set[str] = set()
    sections = []
    for index, raw_section in enumerate(raw_sections[:MAX_SECTIONS]):
        if not isinstance(raw_section, dict):
            logger.debug("normalize: dropping non-object section at index %d", index)
            continue
        sections.append(normalize_section(raw_section, index, taken))

    raw_actions = data.get("actions")
    actions = []
    if isinstance(raw_actions, list):
        action_ids: set[str] = set()
        for index, raw_action in enumerate(raw_actions[:MAX_ACTIONS]):
            action = _normalize_action(raw_action, index, action_ids)
            if action is not None:
                actions.append(action)

    card_type = _text(data.get("cardType")) or _text(data.get("type")) or GENERIC_SECTION_TYPE

    return CardConfig(
        id=card_id,
        title=title,
        subtitle=_text(data.get("cardSubtitle", data.get("subtitle"))),
        type=card_type.strip().lower(),
        description=_text(data.get("description")),
        sections=tuple(sections),
        actions=tuple(actions),
    )


def resolve_section_type(raw_type: Any) -> str:
    """Canonical section tag, or "generic" for anything unrecognised."""
    key = str(raw_type or "").strip().lower().replace("_", "-").replace(" ", "-")
    key = _TYPE_ALIASES.get(key, key)
    if key in SECTION_TYPES:
        return key
    return GENERIC_SECTION_TYPE


def normalize_section(raw: dict[str, Any], index: int, taken: set[str]) -> Section:
    raw_type = _text(raw.get("type")) or ""
    section_type = resolve_section_type(raw_type)
    title = _text(raw.get("title")) or ""

    base = _given_id(raw) or slugify(title) or slugify(raw_type) or f"section_{index}"
    section_id = _unique(base, taken)

    raw_fields: list[Any] = []
    for key in ("fields", "items"):
        value = raw.get(key)
        if isinstance(value, list):
            raw_fields.extend(value)

    field_ids: set[str] = set()
    fields = []
    for field_index, raw_field in enumerate(raw_fields):
        if not isinstance(raw_field, dict):
            continue
        fields.append(classify_field(raw_field, section_id, field_index, field_ids))

    return Section(
        id=section_id,
        title=title,
        type=section_type,
        raw_type=raw_type,
        description=_text(raw.get("description")),
        fields=tuple(fields),
        preferred_columns=_span(raw.get("preferredColumns", raw.get("colSpan"))),
    )


def classify_field(raw: dict[str, Any], section_id: str, index: int, taken: set[str]):
    """
    Pick the Field variant from the attributes present.

    Order: map point, contact, metric, list item, value pair, generic.
    A raw field that does not validate as its chosen variant degrades to
    GenericField instead of failing the section.
    """
    name = _text(raw.get("label")) or _text(raw.get("title")) or _text(raw.get("name")) or ""
    slug = slugify(name)
    base = _given_id(raw) or (f"{section_id}_{slug}" if slug else f"{section_id}_field_{index}")
    field_id = _unique(base, taken)

    try:
        return _build_variant(raw, field_id, name)
    except (ValidationError, TypeError, ValueError, OverflowError):
        logger.debug("normalize: field %s degraded to generic", field_id)
        return _generic(raw, field_id, name)


def _build_variant(raw: dict[str, Any], field_id: str, name: str):
    if any(key in raw for key in _MAP_KEYS):
        lat, lng = _coordinates(raw)
        return MapPoint(
            id=field_id,
            label=name,
            lat=lat,
            lng=lng,
            address=_text(raw.get("address")),
        )

    if "email" in raw or "phone" in raw or ("name" in raw and "role" in raw):
        return ContactField(
            id=field_id,
            name=_text(raw.get("name")) or name,
            role=_text(raw.get("role")),
            email=_text(raw.get("email")),
            phone=_text(raw.get("phone")),
        )

    value = raw.get("value")
    if _is_number(value) and any(key in raw for key in _METRIC_KEYS):
        trend = raw.get("trend")
        return MetricField(
            id=field_id,
            label=name,
            value=value,
            change=raw.get("change") if _is_number(raw.get("change")) else None,
            trend=trend if trend in _TRENDS else None,
            percentage=raw.get("percentage") if _is_number(raw.get("percentage")) else None,
            format=_text(raw.get("format")),
        )

    if "title" in raw and "label" not in raw:
        return ListItem(
            id=field_id,
            title=name,
            description=_text(raw.get("description")),
            value=value if _is_scalar(value) else None,
        )

    if "label" in raw and (value is None or _is_scalar(value)):
        return ValueField(
            id=field_id,
            label=name,
            value=value,
            type=_text(raw.get("type")),
        )

    return _generic(raw, field_id, name)


def _generic(raw: dict[str, Any], field_id: str, name: str) -> GenericField:
    attributes = {k: v for k, v in raw.items() if k != "id"}
    return GenericField(id=field_id, label=name, attributes=attributes)


def _normalize_action(raw: Any, index: int, taken: set[str]) -> Action | None:
    if not isinstance(raw, dict):
        return None
    label = _text(raw.get("label")) or _text(raw.get("title")) or ""
    action_id = _unique(_given_id(raw) or f"action_{slugify(label) or index}", taken)
    return Action(
        id=action_id,
        label=label,
        kind=_text(raw.get("type", raw.get("kind"))),
        target=_text(raw.get("action", raw.get("url", raw.get("target")))),
    )


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if _is_number(value):
        return str(value)
    return None


def _is_number(value: Any) -> bool:
    """Finite int or float. 1e400 decodes to inf and is treated as absent."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, bool)) or _is_number(value)


def _span(value: Any) -> int | None:
    if not _is_number(value):
        return None
    return max(1, min(4, int(value)))


def _coordinates(raw: dict[str, Any]) -> tuple[float | None, float | None]:
    lat = raw.get("lat", raw.get("latitude"))
    lng = raw.get("lng", raw.get("longitude"))
    coords = raw.get("coordinates")
    if isinstance(coords, dict):
        lat = coords.get("lat", coords.get("latitude", lat))
        lng = coords.get("lng", coords.get("longitude", lng))
    elif isinstance(coords, list) and len(coords) == 2:
        lat, lng = coords
    return (float(lat) if _is_number(lat) else None, float(lng) if _is_number(lng) else None)
