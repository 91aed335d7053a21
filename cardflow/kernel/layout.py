"""
cardflow Kernel — Grid Layout Engine

(prioritized sections, viewport width, heights) → LayoutResult

Masonry placement over a column grid:

  1. Column count from the viewport breakpoint, capped by max_columns
  2. Stable sort by priority (ties keep input order)
  3. For each section, clamp its span to the column count and pick the
     leftmost start column whose covered columns have the smallest maximum
     accumulated height
  4. Record that height as row_offset, bump the covered columns by
     height + gap

Pure and deterministic: the same inputs always produce the same slots.
MasonryLayout adds a cache on top and recomputes from scratch whenever any
input that affects placement changes. It never patches a previous result.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

from cardflow.kernel.models import Section
from cardflow.kernel.types import LayoutResult, LayoutSlot, PrioritizedSection

logger = logging.getLogger(__name__)

DEFAULT_GAP = 12
DEFAULT_MAX_COLUMNS = 4

# (name, min width px, columns), ascending
BREAKPOINTS: tuple[tuple[str, int, int], ...] = (
    ("xs", 0, 1),
    ("sm", 640, 1),
    ("md", 768, 2),
    ("lg", 1024, 3),
    ("xl", 1280, 4),
    ("xxl", 1536, 4),
)

# Height estimation for sections the renderer has not measured yet
BASE_PADDING = 48
HEIGHT_PER_FIELD = 32
HEIGHT_PER_ITEM = 52
MIN_HEIGHT = 80
MAX_HEIGHT = 600
DEFAULT_TYPE_HEIGHT = 180

TYPE_BASE_HEIGHTS: dict[str, int] = {
    "overview": 180,
    "contact-card": 160,
    "network-card": 160,
    "analytics": 200,
    "stats": 180,
    "chart": 280,
    "map": 250,
    "financials": 200,
    "info": 180,
    "list": 220,
    "event": 240,
    "timeline": 240,
    "product": 260,
    "solutions": 240,
    "quotation": 160,
    "text-reference": 180,
    "project": 200,
}

# Field kinds rendered as list rows rather than label/value lines
_ITEM_KINDS = {"list_item", "contact", "map_point"}


def breakpoint_for_width(width: float) -> str:
    """Name of the largest breakpoint whose minimum width is <= width."""
    name = BREAKPOINTS[0][0]
    for bp_name, min_width, _ in BREAKPOINTS:
        if width >= min_width:
            name = bp_name
    return name


def columns_for_width(width: float, max_columns: int = DEFAULT_MAX_COLUMNS) -> int:
    columns = BREAKPOINTS[0][2]
    for _, min_width, bp_columns in BREAKPOINTS:
        if width >= min_width:
            columns = bp_columns
    return max(1, min(columns, max_columns))


def estimate_height(section: Section) -> float:
    """
    Rough pixel height for an unmeasured section.

    Type base height plus padding and per-row cost. Item-like fields (list
    items, contacts, map points) cost more than label/value lines.
    """
    base = TYPE_BASE_HEIGHTS.get(section.type, DEFAULT_TYPE_HEIGHT)
    items = sum(1 for f in section.fields if f.kind in _ITEM_KINDS)
    lines = len(section.fields) - items
    content = BASE_PADDING + lines * HEIGHT_PER_FIELD + items * HEIGHT_PER_ITEM
    return float(max(MIN_HEIGHT, min(MAX_HEIGHT, max(base, content))))


def compute_layout(
    items: Sequence[PrioritizedSection],
    width: float,
    heights: Mapping[str, float] | None = None,
    gap: float = DEFAULT_GAP,
    max_columns: int = DEFAULT_MAX_COLUMNS,
) -> LayoutResult:
    """
    Place sections on the column grid.

    Args:
        items: Sections with resolved priority and preferred span
        width: Viewport width in px
        heights: Measured heights by section id; missing ones are estimated
        gap: Vertical gap between stacked sections
        max_columns: Upper bound on the column count

    Returns:
        LayoutResult with one slot per section, in placement order
    """
    columns = columns_for_width(width, max_columns)
    bp = breakpoint_for_width(width)
    if not items:
        return LayoutResult(columns=columns, breakpoint=bp)

    heights = heights or {}
    column_heights = [0.0] * columns
    ordered = sorted(enumerate(items), key=lambda pair: (pair[1].priority, pair[0]))

    slots = []
    for _, item in ordered:
        span = max(1, min(item.preferred_columns, columns))
        height = heights.get(item.section_id)
        if height is None:
            height = estimate_height(item.section)

        start, row_offset = _best_window(column_heights, span)
        for col in range(start, start + span):
            column_heights[col] = row_offset + height + gap

        slots.append(
            LayoutSlot(
                section_id=item.section_id,
                column_span=span,
                row_offset=row_offset,
                column_offset=start,
                height=float(height),
            )
        )

    container_height = max(0.0, max(column_heights) - gap)
    return LayoutResult(columns=columns, breakpoint=bp, slots=tuple(slots), container_height=container_height)


def _best_window(column_heights: list[float], span: int) -> tuple[int, float]:
    """Leftmost start column minimizing the max height across the span."""
    best_start = 0
    best_height = max(column_heights[0:span])
    for start in range(1, len(column_heights) - span + 1):
        window_height = max(column_heights[start : start + span])
        if window_height < best_height:
            best_start = start
            best_height = window_height
    return best_start, best_height


class MasonryLayout:
    """
    Caching wrapper around compute_layout.

    The cache key is the column count and breakpoint plus the ordered
    (id, priority, span, height) tuple of every section. Width changes inside a
    breakpoint reuse the cached slots; anything else recomputes the whole
    layout.
    """

    def __init__(self, gap: float = DEFAULT_GAP, max_columns: int = DEFAULT_MAX_COLUMNS) -> None:
        self.gap = gap
        self.max_columns = max_columns
        self._signature: tuple | None = None
        self._result: LayoutResult | None = None

    @property
    def result(self) -> LayoutResult | None:
        return self._result

    def update(
        self,
        items: Sequence[PrioritizedSection],
        width: float,
        heights: Mapping[str, float] | None = None,
    ) -> tuple[LayoutResult, bool]:
        """
        Returns:
            (layout, recomputed). recomputed is False when the cached layout
            was returned unchanged.
        """
        heights = heights or {}
        columns = columns_for_width(width, self.max_columns)
        signature = (
            columns,
            breakpoint_for_width(width),
            tuple(
                (
                    item.section_id,
                    item.priority,
                    item.preferred_columns,
                    heights.get(item.section_id, estimate_height(item.section)),
                )
                for item in items
            ),
        )
        if self._result is not None and signature == self._signature:
            return self._result, False

        self._result = compute_layout(items, width, heights, gap=self.gap, max_columns=self.max_columns)
        self._signature = signature
        logger.debug("layout: recomputed %d slots over %d columns", len(self._result.slots), columns)
        return self._result, True

    def reset(self) -> None:
        self._signature = None
        self._result = None
