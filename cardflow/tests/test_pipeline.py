"""
Tests for cardflow/services/pipeline.py

One process() call = one full cycle: validate → normalize | recover → diff →
prioritize → layout. Failed cycles keep the previous preview on screen.
"""

from __future__ import annotations

import json
import logging

from cardflow.kernel.priority import PriorityResolver
from cardflow.kernel.types import Failed, Recovered, Valid
from cardflow.services.pipeline import PreviewPipeline


class TestValidInput:
    def test_first_cycle(self, pipeline, make_card_text):
        update = pipeline.process(make_card_text())
        assert isinstance(update.outcome, Valid)
        assert update.ok
        assert update.card.title == "Acme"
        assert update.diff.added == {"overview", "details"}
        assert len(update.layout.slots) == 2
        assert not update.retained
        assert pipeline.card is update.card

    def test_second_cycle_diffs_against_first(self, pipeline, make_card_text):
        pipeline.process(make_card_text("Acme", "Overview", "Details"))
        update = pipeline.process(make_card_text("Acme", "Overview", "Details", "Extra"))
        assert update.diff.added == {"extra"}
        assert update.diff.unchanged == {"overview", "details"}
        assert update.diff.changed == {}

    def test_layout_uses_priorities(self, pipeline):
        text = json.dumps(
            {
                "cardTitle": "X",
                "sections": [
                    {"title": "Timeline", "type": "timeline"},
                    {"title": "People", "type": "contact-card"},
                ],
            }
        )
        update = pipeline.process(text)
        assert [s.section_id for s in update.layout.slots] == ["people", "timeline"]

    def test_custom_resolver(self, make_card_text):
        resolver = PriorityResolver(rank=lambda t, title, shape: 1 if title == "Details" else None)
        pipeline = PreviewPipeline(width=1300, resolver=resolver)
        update = pipeline.process(make_card_text())
        assert update.layout.slots[0].section_id == "details"


class TestRecoveredInput:
    def test_truncated_stream(self, pipeline):
        text = '{"cardTitle":"X","cardType":"Company","sections":[{"title":"A","type":"info","fields":[]}'
        update = pipeline.process(text)
        assert isinstance(update.outcome, Recovered)
        assert update.card.title == "X"
        assert update.card.section_ids() == ["a"]
        assert update.outcome.notes

    def test_recovered_card_keeps_ids_when_complete(self, pipeline, make_card_text):
        full = make_card_text()
        partial = pipeline.process(full[:-2])
        complete = pipeline.process(full)
        assert "overview" in partial.card.section_ids()
        assert "overview" in complete.diff.unchanged


class TestFailures:
    def test_unrecoverable_keeps_previous(self, pipeline, make_card_text):
        good = pipeline.process(make_card_text())
        update = pipeline.process("hello")
        assert isinstance(update.outcome, Failed)
        assert update.outcome.error.kind == "recovery_exhausted"
        assert update.position == 0
        assert update.retained
        assert update.card is good.card
        assert update.layout is good.layout
        assert pipeline.card is good.card

    def test_structural_error(self, pipeline):
        update = pipeline.process('{"cardTitle": "X"}')
        assert isinstance(update.outcome, Failed)
        assert update.outcome.error.kind == "structural"
        assert "sections" in update.message
        assert update.card is None

    def test_failure_before_any_card(self, pipeline):
        update = pipeline.process("[1, 2")
        assert not update.ok
        assert update.card is None
        assert update.layout is None


class TestEmptyInput:
    def test_empty_clears_preview(self, pipeline, make_card_text):
        pipeline.process(make_card_text())
        update = pipeline.process("  {}  ")
        assert update.is_empty
        assert update.card is None
        assert pipeline.card is None
        assert pipeline.layout is None

    def test_card_after_empty_is_all_added(self, pipeline, make_card_text):
        pipeline.process(make_card_text())
        pipeline.process("")
        update = pipeline.process(make_card_text())
        assert update.diff.added == {"overview", "details"}


class TestRelayout:
    def test_no_card(self, pipeline):
        assert pipeline.relayout(width=500) == (None, False)

    def test_breakpoint_change(self, pipeline, make_card_text):
        pipeline.process(make_card_text())
        layout, changed = pipeline.relayout(width=500)
        assert changed
        assert layout.columns == 1
        assert pipeline.relayout(width=520) == (layout, False)

    def test_measured_heights(self, pipeline, make_card_text):
        pipeline.process(make_card_text())
        layout, changed = pipeline.relayout(heights={"overview": 333})
        assert changed
        assert layout.slot_for("overview").height == 333

    def test_heights_carry_into_next_cycle(self, pipeline, make_card_text):
        pipeline.set_heights({"overview": 321})
        update = pipeline.process(make_card_text())
        assert update.layout.slot_for("overview").height == 321

    def test_stale_heights_are_pruned(self, pipeline, make_card_text):
        pipeline.set_heights({"overview": 300, "gone": 99})
        pipeline.process(make_card_text())
        assert pipeline.heights == {"overview": 300}

    def test_reused_id_does_not_inherit_old_height(self, pipeline, make_card_text):
        pipeline.process(make_card_text())
        pipeline.relayout(heights={"details": 444})
        pipeline.process(make_card_text("Acme", "Overview"))
        update = pipeline.process(make_card_text())
        assert update.layout.slot_for("details").height != 444


class TestNonFiniteNumbers:
    def test_huge_exponent_is_valid_and_ignored(self, pipeline):
        text = '{"cardTitle":"X","sections":[{"title":"A","type":"info","preferredColumns":1e400,"fields":[]}]}'
        update = pipeline.process(text)
        assert isinstance(update.outcome, Valid)
        assert update.card.sections[0].preferred_columns is None
        assert update.layout.slot_for("a") is not None

    def test_nan_literal_is_not_valid(self, pipeline):
        text = '{"cardTitle":"X","sections":[{"title":"A","type":"info","preferredColumns":NaN,"fields":[]}]}'
        update = pipeline.process(text)
        assert not isinstance(update.outcome, Valid)


class TestStageBoundary:
    def test_unexpected_stage_error_keeps_previous(self, make_card_text, caplog):
        def rank(section_type, title, shape):
            if title == "Boom":
                raise RuntimeError("ranking exploded")
            return None

        pipeline = PreviewPipeline(width=1300, resolver=PriorityResolver(rank=rank))
        good = pipeline.process(make_card_text())
        with caplog.at_level(logging.ERROR, logger="cardflow.services.pipeline"):
            update = pipeline.process(make_card_text("Acme", "Boom"))

        assert isinstance(update.outcome, Failed)
        assert update.outcome.error.kind == "internal"
        assert update.retained
        assert update.card is good.card
        assert pipeline.card is good.card
        assert "pipeline: cycle failed" in caplog.text

        recovered = pipeline.process(make_card_text("Acme", "Overview", "Details", "Extra"))
        assert recovered.diff.added == {"extra"}
