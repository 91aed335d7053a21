"""
Single-timer debouncer on the asyncio event loop.

At most one timer is pending at any time: every call() cancels the previous
handle before scheduling a new one, so only the last arguments reach the
callback. close() cancels the pending handle and flips a liveness flag that
any callback already queued by the loop checks before doing work.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Delays a callback until calls stop arriving for `delay_ms`.

    Must be used from inside a running event loop.
    """

    def __init__(self, delay_ms: int, callback: Callable[..., Any], name: str = "debounce") -> None:
        self.delay_ms = delay_ms
        self.callback = callback
        self.name = name
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple = ()
        self._alive = True

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return not self._alive

    def call(self, *args: Any) -> None:
        """Schedule the callback with `args`, replacing any pending call."""
        if not self._alive:
            logger.warning("%s: call after close ignored", self.name)
            return
        self.cancel()
        self._args = args
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay_ms / 1000, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._args = ()

    def flush(self) -> bool:
        """Run the pending call now. Returns False when nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def close(self) -> None:
        self.cancel()
        self._alive = False

    def _fire(self) -> None:
        args = self._args
        self._handle = None
        self._args = ()
        if not self._alive:
            logger.debug("%s: timer fired after close, dropped", self.name)
            return
        self.callback(*args)
