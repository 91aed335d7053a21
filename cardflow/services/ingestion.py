"""
Debounced ingestion loop.

Editor keystrokes or streamed chunks arrive as whole replacement buffers. The
loop coalesces bursts into one pipeline run per quiet period:

    submit(buffer) ─┬─ identical to last processed → cancel timer, ignore
                    └─ otherwise → replace the single pending timer
    timer fires ──── fingerprint + normalized compare → skip if cosmetic
                     else PreviewPipeline.process() → on_update(update)

Each loop owns its own "last processed" state; two loops never interfere.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Callable, Iterable

from cardflow.config import settings
from cardflow.services.debounce import Debouncer
from cardflow.services.pipeline import PreviewPipeline, PreviewUpdate
from cardflow.utils.content_hash import content_fingerprint, normalize_content

logger = logging.getLogger(__name__)


class IngestionLoop:
    """
    Coalesces buffer updates and drives the preview pipeline.

    Args:
        on_update: Called with each PreviewUpdate the pipeline produces
        pipeline: Pipeline to drive (a fresh one by default)
        debounce_ms: Quiet period before a buffer is processed
    """

    def __init__(
        self,
        on_update: Callable[[PreviewUpdate], None],
        *,
        pipeline: PreviewPipeline | None = None,
        debounce_ms: int | None = None,
    ) -> None:
        self.on_update = on_update
        self.pipeline = pipeline or PreviewPipeline()
        delay = debounce_ms if debounce_ms is not None else settings.DEBOUNCE_MS
        self._debouncer = Debouncer(delay, self._process, name="ingestion")
        self._last_buffer: str | None = None
        self._last_fingerprint: str | None = None
        self._last_normalized: str | None = None
        self.runs = 0
        self.skipped = 0

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    @property
    def closed(self) -> bool:
        return self._debouncer.closed

    def submit(self, buffer: str) -> None:
        """Record a new buffer. Must be called from inside the event loop."""
        if self.closed:
            logger.warning("ingestion: submit after close ignored")
            return
        if buffer == self._last_buffer:
            # Edited back to what is already on screen
            self._debouncer.cancel()
            return
        self._debouncer.call(buffer)

    def flush(self) -> bool:
        """Process a pending buffer immediately. Returns False if none was pending."""
        return self._debouncer.flush()

    def close(self) -> None:
        self._debouncer.close()
        logger.debug("ingestion: closed after %d runs, %d skipped", self.runs, self.skipped)

    async def feed(self, chunks: Iterable[str] | AsyncIterable[str]) -> None:
        """
        Accumulate streamed chunks, submitting the growing buffer after each,
        then flush once the stream ends.
        """
        buffer = ""
        if hasattr(chunks, "__aiter__"):
            async for chunk in chunks:
                buffer += chunk
                self.submit(buffer)
        else:
            for chunk in chunks:
                buffer += chunk
                self.submit(buffer)
        self.flush()

    def _process(self, buffer: str) -> None:
        fingerprint = content_fingerprint(buffer)
        if fingerprint == self._last_fingerprint:
            normalized = normalize_content(buffer)
            if normalized == self._last_normalized:
                logger.debug("ingestion: cosmetic change only, skipping")
                self._last_buffer = buffer
                self.skipped += 1
                return
        else:
            normalized = normalize_content(buffer)

        self.runs += 1
        try:
            update = self.pipeline.process(buffer)
        except Exception:
            # Left unrecorded so the same buffer is retried on the next submit.
            logger.exception("ingestion: pipeline failed")
            return

        self._last_buffer = buffer
        self._last_fingerprint = fingerprint
        self._last_normalized = normalized
        try:
            self.on_update(update)
        except Exception:
            logger.exception("ingestion: on_update callback failed")
