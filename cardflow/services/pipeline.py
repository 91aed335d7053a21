"""
Preview pipeline: one buffer in, one PreviewUpdate out.

    validate → normalize (strict) | recover → normalize (partial)
             → diff vs last card → prioritize → layout

Holds the only mutable state of a preview: the last successfully built card,
the viewport width and the measured section heights. A failed cycle keeps the
previous card and layout so the renderer never goes blank on a typo.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from cardflow.config import settings
from cardflow.kernel.differ import diff_cards
from cardflow.kernel.errors import CardflowError, RecoveryExhausted, StructuralError
from cardflow.kernel.layout import MasonryLayout
from cardflow.kernel.models import CardConfig
from cardflow.kernel.normalize import normalize_card
from cardflow.kernel.priority import PriorityResolver
from cardflow.kernel.recovery import recover_partial
from cardflow.kernel.syntax import loads_strict, validate_syntax
from cardflow.kernel.types import (
    DiffResult,
    ErrorInfo,
    Failed,
    LayoutResult,
    ParseOutcome,
    PrioritizedSection,
    Recovered,
    Valid,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewUpdate:
    """
    Everything the renderer needs from one cycle.

    `retained` is True when the cycle failed and `card`/`layout` are the
    previous preview's, carried over unchanged.
    """

    outcome: ParseOutcome | None = None
    card: CardConfig | None = None
    diff: DiffResult | None = None
    layout: LayoutResult | None = None
    is_empty: bool = False
    retained: bool = False

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, (Valid, Recovered))

    @property
    def message(self) -> str:
        if isinstance(self.outcome, Failed):
            return self.outcome.error.message
        return ""

    @property
    def position(self) -> int | None:
        if isinstance(self.outcome, Failed):
            return self.outcome.error.position
        return None


class PreviewPipeline:
    """
    Runs the parse → diff → layout stages for successive buffers.

    Args:
        width: Initial viewport width (defaults to settings.DEFAULT_WIDTH)
        resolver: Priority resolver (defaults to the static table)
        layout: Masonry layout cache (defaults to settings gap/max columns)
    """

    def __init__(
        self,
        width: int | None = None,
        resolver: PriorityResolver | None = None,
        layout: MasonryLayout | None = None,
    ) -> None:
        self.width = width if width is not None else settings.DEFAULT_WIDTH
        self.resolver = resolver or PriorityResolver()
        self.masonry = layout or MasonryLayout(gap=settings.LAYOUT_GAP, max_columns=settings.MAX_COLUMNS)
        self.heights: dict[str, float] = {}
        self._card: CardConfig | None = None
        self._items: list[PrioritizedSection] = []

    @property
    def card(self) -> CardConfig | None:
        return self._card

    @property
    def layout(self) -> LayoutResult | None:
        return self.masonry.result if self._card is not None else None

    # ------------------------------------------------------------------
    # Parse cycle
    # ------------------------------------------------------------------

    def process(self, buffer: str) -> PreviewUpdate:
        """Run one full cycle over `buffer`. Never raises; failures become `Failed`."""
        report = validate_syntax(buffer)
        if report.is_empty:
            logger.debug("pipeline: empty buffer, clearing preview")
            self._card = None
            self._items = []
            self.heights = {}
            self.masonry.reset()
            return PreviewUpdate(is_empty=True)

        try:
            if report.is_valid:
                card = normalize_card(loads_strict(buffer))
                outcome: ParseOutcome = Valid(card=card)
            else:
                recovered = recover_partial(buffer)
                if recovered is None:
                    raise RecoveryExhausted(report.error, position=report.position, suggestion=report.suggestion)
                card = normalize_card(recovered.data, partial=True)
                outcome = Recovered(card=card, notes=recovered.notes)
            diff = diff_cards(self._card, card)
            items = self.resolver.prioritize(card.sections)
            # Measurements for sections no longer on the card are dropped.
            live = set(card.section_ids())
            heights = {sid: h for sid, h in self.heights.items() if sid in live}
            layout, _ = self.masonry.update(items, self.width, heights)
        except StructuralError as e:
            logger.info("pipeline: structural error: %s", e)
            return self._retain(Failed(error=e.info))
        except CardflowError as e:
            logger.warning("pipeline: %s at %s", e, e.info.position)
            return self._retain(Failed(error=e.info))
        except Exception:
            logger.exception("pipeline: cycle failed")
            error = ErrorInfo(kind="internal", message="Preview could not be built from this input")
            return self._retain(Failed(error=error))

        self._card = card
        self._items = items
        self.heights = heights
        logger.info(
            "pipeline: %s card %s, +%d -%d ~%d sections",
            outcome.tag,
            card.id,
            len(diff.added),
            len(diff.removed),
            len(diff.changed),
        )
        return PreviewUpdate(outcome=outcome, card=card, diff=diff, layout=layout)

    def _retain(self, outcome: Failed) -> PreviewUpdate:
        return PreviewUpdate(outcome=outcome, card=self._card, layout=self.layout, retained=True)

    # ------------------------------------------------------------------
    # Layout inputs
    # ------------------------------------------------------------------

    def set_viewport(self, width: int) -> None:
        self.width = width

    def set_heights(self, heights: Mapping[str, float]) -> None:
        """Merge measured section heights reported by the renderer."""
        self.heights.update(heights)

    def relayout(
        self,
        width: int | None = None,
        heights: Mapping[str, float] | None = None,
    ) -> tuple[LayoutResult | None, bool]:
        """
        Recompute the layout for the current card with new viewport inputs.

        Returns:
            (layout, changed). layout is None when there is no card yet.
        """
        if width is not None:
            self.set_viewport(width)
        if heights:
            self.set_heights(heights)
        if self._card is None:
            return None, False
        return self.masonry.update(self._items, self.width, self.heights)
