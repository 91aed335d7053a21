"""
cardflow Grid Layout Engine -- Placement Tests

compute_layout() is a pure masonry placer:
  - column count from the breakpoint table, capped by max_columns
  - stable priority sort (ties keep input order)
  - span clamped to the column count
  - leftmost window with the smallest max height wins
  - row_offset = that height; covered columns bump by height + gap

Covers:
  - Breakpoint table
  - Shortest-column placement and spans
  - Priority ordering
  - Height estimation for unmeasured sections
  - Determinism and width shrink
"""

import pytest

from cardflow.kernel.layout import (
    MAX_HEIGHT,
    breakpoint_for_width,
    columns_for_width,
    compute_layout,
    estimate_height,
)
from cardflow.kernel.models import ListItem, Section, ValueField
from cardflow.kernel.types import PrioritizedSection


# ============================================================================
# Helpers
# ============================================================================


def item(section_id, priority=8, span=1, section_type="info"):
    return PrioritizedSection(
        section=Section(id=section_id, type=section_type),
        priority=priority,
        preferred_columns=span,
    )


def slots_by_id(result):
    return {slot.section_id: slot for slot in result.slots}


# ============================================================================
# Breakpoints
# ============================================================================


class TestBreakpoints:
    @pytest.mark.parametrize(
        "width, name, columns",
        [
            (0, "xs", 1),
            (639, "xs", 1),
            (640, "sm", 1),
            (768, "md", 2),
            (1023, "md", 2),
            (1024, "lg", 3),
            (1280, "xl", 4),
            (1536, "xxl", 4),
            (3000, "xxl", 4),
        ],
    )
    def test_table(self, width, name, columns):
        assert breakpoint_for_width(width) == name
        assert columns_for_width(width) == columns

    def test_max_columns_caps(self):
        assert columns_for_width(1536, max_columns=2) == 2


# ============================================================================
# Placement
# ============================================================================


class TestPlacement:
    def test_empty(self):
        result = compute_layout([], 1400)
        assert result.slots == ()
        assert result.columns == 4
        assert result.container_height == 0.0

    def test_fills_shortest_column(self):
        items = [item(f"s{i}") for i in range(5)]
        heights = {f"s{i}": 100 for i in range(5)}
        result = compute_layout(items, 1400, heights, gap=12)
        slots = slots_by_id(result)
        assert [slots[f"s{i}"].column_offset for i in range(4)] == [0, 1, 2, 3]
        assert all(slots[f"s{i}"].row_offset == 0 for i in range(4))
        assert slots["s4"].column_offset == 0
        assert slots["s4"].row_offset == 112
        assert result.container_height == 212

    def test_span_picks_leftmost_lowest_window(self):
        items = [item("a"), item("b"), item("c"), item("d"), item("wide", span=2)]
        heights = {"a": 100, "b": 300, "c": 50, "d": 60, "wide": 80}
        slots = slots_by_id(compute_layout(items, 1400, heights, gap=12))
        # column heights before "wide": [112, 312, 62, 72]
        assert slots["wide"].column_offset == 2
        assert slots["wide"].row_offset == 72
        assert slots["wide"].column_span == 2

    def test_equal_windows_prefer_leftmost(self):
        items = [item("a"), item("b"), item("wide", span=2)]
        slots = slots_by_id(compute_layout(items, 1024, {"a": 100, "b": 100, "wide": 50}, gap=0))
        # three columns: [100, 100, 0]; windows [0,1] → 100, [1,2] → 100
        assert slots["wide"].column_offset == 0
        assert slots["wide"].row_offset == 100

    def test_span_clamped_to_columns(self):
        result = compute_layout([item("wide", span=4)], 800, {"wide": 10})
        assert result.columns == 2
        assert result.slots[0].column_span == 2

    def test_priority_sort_is_stable(self):
        items = [item("late", priority=7), item("first", priority=1), item("tie_a", 6), item("tie_b", 6)]
        result = compute_layout(items, 500, {})
        assert [s.section_id for s in result.slots] == ["first", "tie_a", "tie_b", "late"]

    def test_single_column_stacks(self):
        items = [item("a"), item("b")]
        slots = slots_by_id(compute_layout(items, 500, {"a": 100, "b": 40}, gap=12))
        assert slots["b"].column_offset == 0
        assert slots["b"].row_offset == 112

    def test_missing_heights_are_estimated(self):
        section_item = item("chart", section_type="chart")
        result = compute_layout([section_item], 1400)
        assert result.slots[0].height == estimate_height(section_item.section)


# ============================================================================
# Determinism
# ============================================================================


class TestDeterminism:
    def test_same_inputs_same_layout(self):
        items = [item(f"s{i}", priority=i % 3 + 1, span=i % 2 + 1) for i in range(8)]
        heights = {f"s{i}": 50 + i * 17 for i in range(8)}
        assert compute_layout(items, 1300, heights) == compute_layout(items, 1300, heights)

    @pytest.mark.parametrize("width", [300, 700, 900, 1100])
    def test_shrink_never_overflows(self, width):
        items = [item(f"s{i}", span=(i % 4) + 1) for i in range(10)]
        wide = compute_layout(items, 1600)
        narrow = compute_layout(items, width)
        assert wide.columns == 4
        for slot in narrow.slots:
            assert slot.column_offset + slot.column_span <= narrow.columns


# ============================================================================
# Height estimation
# ============================================================================


class TestEstimateHeight:
    def test_type_base_height(self):
        assert estimate_height(Section(id="c", type="chart")) == 280

    def test_unknown_type_default(self):
        assert estimate_height(Section(id="g", type="generic")) == 180

    def test_many_fields_grow(self):
        fields = tuple(ValueField(id=f"f{i}", label="x", value=i) for i in range(10))
        assert estimate_height(Section(id="i", type="info", fields=fields)) == 48 + 10 * 32

    def test_capped(self):
        fields = tuple(ListItem(id=f"l{i}", title="x") for i in range(30))
        assert estimate_height(Section(id="l", type="list", fields=fields)) == MAX_HEIGHT
