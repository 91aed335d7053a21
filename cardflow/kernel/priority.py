"""
cardflow Kernel — Section Priority Resolver

(type, title, content shape) → (priority, preferred_columns)

A fixed, data-free rule table; first match wins, lower priority is placed
first:

  1  identity / contact sections
  2  title contains "overview" (or type overview)
  3  analytic / metric sections
  4  map / geo
  5  chart
  6  generic list / info
  7  narrative / event content
  8  anything unrecognised

Sections that fell back to the generic type are bucketed by what their fields
look like before sinking to the default bucket.

PriorityResolver accepts an optional ranking function for extension section
types; it is consulted before the table and returns None to defer.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Iterable

from cardflow.kernel.models import Section
from cardflow.kernel.types import GENERIC_SECTION_TYPE, PrioritizedSection, SectionPriority, SectionShape

PRIORITY_IDENTITY = 1
PRIORITY_OVERVIEW = 2
PRIORITY_ANALYTICS = 3
PRIORITY_MAP = 4
PRIORITY_CHART = 5
PRIORITY_LIST = 6
PRIORITY_NARRATIVE = 7
PRIORITY_DEFAULT = 8

IDENTITY_TYPES = frozenset({"contact-card", "contact", "network-card", "profile"})
ANALYTICS_TYPES = frozenset({"analytics", "stats", "metrics", "financials"})
MAP_TYPES = frozenset({"map", "locations"})
CHART_TYPES = frozenset({"chart"})
LIST_TYPES = frozenset({"info", "list", "product", "solutions", "table", "project"})
NARRATIVE_TYPES = frozenset({"event", "timeline", "news", "quotation", "text-reference"})

# Generic sections: dominant field kind → bucket
_SHAPE_BUCKETS: dict[str, int] = {
    "contact": PRIORITY_IDENTITY,
    "metric": PRIORITY_ANALYTICS,
    "map_point": PRIORITY_MAP,
    "list_item": PRIORITY_LIST,
    "value": PRIORITY_LIST,
}

TYPE_COLUMNS: dict[str, int] = {
    "overview": 2,
    "chart": 2,
    "map": 2,
    "locations": 2,
    "financials": 2,
}

RankFunction = Callable[[str, str, SectionShape], int | None]


def resolve_priority(
    section_type: str,
    title: str = "",
    shape: SectionShape | None = None,
    preferred_columns: int | None = None,
) -> SectionPriority:
    """
    Pure rule-table lookup.

    Args:
        section_type: Canonical section tag (see resolve_section_type)
        title: Section title; "overview" anywhere in it promotes the section
        shape: Field count and dominant field kind
        preferred_columns: Caller override, clamped to 1-4

    Returns:
        SectionPriority(priority, preferred_columns)
    """
    section_type = (section_type or "").lower()
    is_overview = "overview" in (title or "").lower() or section_type == "overview"

    if section_type in IDENTITY_TYPES:
        priority = PRIORITY_IDENTITY
    elif is_overview:
        priority = PRIORITY_OVERVIEW
    elif section_type in ANALYTICS_TYPES:
        priority = PRIORITY_ANALYTICS
    elif section_type in MAP_TYPES:
        priority = PRIORITY_MAP
    elif section_type in CHART_TYPES:
        priority = PRIORITY_CHART
    elif section_type in LIST_TYPES:
        priority = PRIORITY_LIST
    elif section_type in NARRATIVE_TYPES:
        priority = PRIORITY_NARRATIVE
    elif section_type == GENERIC_SECTION_TYPE and shape is not None and shape.dominant_kind:
        priority = _SHAPE_BUCKETS.get(shape.dominant_kind, PRIORITY_DEFAULT)
    else:
        priority = PRIORITY_DEFAULT

    if preferred_columns is not None:
        columns = max(1, min(4, int(preferred_columns)))
    elif is_overview:
        columns = TYPE_COLUMNS["overview"]
    else:
        columns = TYPE_COLUMNS.get(section_type, 1)

    return SectionPriority(priority=priority, preferred_columns=columns)


def section_shape(section: Section) -> SectionShape:
    """Field count and the most common field kind (ties → first seen)."""
    if not section.fields:
        return SectionShape()
    counts = Counter(f.kind for f in section.fields)
    dominant = max(counts, key=lambda kind: counts[kind])
    return SectionShape(field_count=len(section.fields), dominant_kind=dominant)


class PriorityResolver:
    """
    Resolves sections against the static table, with an optional ranking hook.

    Args:
        rank: Called as rank(type, title, shape) before the table; return an
            int to override the priority, or None to defer to the table
    """

    def __init__(self, rank: RankFunction | None = None) -> None:
        self.rank = rank

    def resolve(self, section: Section) -> SectionPriority:
        shape = section_shape(section)
        resolved = resolve_priority(section.type, section.title, shape, section.preferred_columns)
        if self.rank is not None:
            # Extension types keep their caller spelling in raw_type.
            override = self.rank(section.raw_type or section.type, section.title, shape)
            if override is not None:
                return SectionPriority(priority=int(override), preferred_columns=resolved.preferred_columns)
        return resolved

    def prioritize(self, sections: Iterable[Section]) -> list[PrioritizedSection]:
        result = []
        for section in sections:
            resolved = self.resolve(section)
            result.append(
                PrioritizedSection(
                    section=section,
                    priority=resolved.priority,
                    preferred_columns=resolved.preferred_columns,
                )
            )
        return result


def prioritize_sections(sections: Iterable[Section]) -> list[PrioritizedSection]:
    """Static-table prioritization of sections, input order preserved."""
    return PriorityResolver().prioritize(sections)
