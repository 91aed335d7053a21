"""
Viewport tracking: debounced resize → layout recompute.

Resize events come in bursts while a window is dragged. Only the last width of
a burst reaches the layout engine, and on_layout only hears about results that
differ from what is already on screen.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from cardflow.config import settings
from cardflow.kernel.types import LayoutResult
from cardflow.services.debounce import Debouncer
from cardflow.services.pipeline import PreviewPipeline

logger = logging.getLogger(__name__)


class ViewportTracker:
    def __init__(
        self,
        pipeline: PreviewPipeline,
        on_layout: Callable[[LayoutResult], None],
        debounce_ms: int | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.on_layout = on_layout
        delay = debounce_ms if debounce_ms is not None else settings.RESIZE_DEBOUNCE_MS
        self._debouncer = Debouncer(delay, self._apply, name="viewport")

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def resize(self, width: int) -> None:
        self._debouncer.call(width)

    def flush(self) -> bool:
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.close()

    def _apply(self, width: int) -> None:
        layout, changed = self.pipeline.relayout(width=width)
        if layout is None or not changed:
            logger.debug("viewport: width %d, layout unchanged", width)
            return
        try:
            self.on_layout(layout)
        except Exception:
            logger.exception("viewport: on_layout callback failed")
