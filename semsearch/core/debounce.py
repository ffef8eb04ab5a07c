"""
Query debouncer: collapses bursts of query-text updates into one trigger.

Two states, Idle and Pending. Every submit cancels the outstanding timer and
starts a new one; when a timer elapses uninterrupted the latest text is
emitted exactly once.
"""

import asyncio
from enum import Enum
from typing import Callable, Optional

from .config import DEBOUNCE_MS
from ..util.logging import logger


class DebounceState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class QueryDebouncer:
    """Cancel-and-reschedule timer on the running asyncio loop."""

    def __init__(self, callback: Callable[[str], object], interval_ms: int = None):
        """
        Args:
            callback: Called with the latest text once the quiet interval elapses.
                A coroutine result is scheduled as a task.
            interval_ms: Quiet interval in milliseconds
        """
        self.callback = callback
        self.interval_ms = interval_ms if interval_ms is not None else DEBOUNCE_MS
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending_text: Optional[str] = None
        self._closed = False
        # Scheduled coroutine callbacks, held until they finish
        self._tasks = set()

    @property
    def state(self) -> DebounceState:
        return DebounceState.PENDING if self._handle is not None else DebounceState.IDLE

    @property
    def pending_text(self) -> Optional[str]:
        return self._pending_text

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, text: str) -> None:
        """Register a new query text, superseding any pending one."""
        if self._closed:
            logger.log_debounce("ignored_after_close", text)
            return

        self.cancel()
        loop = asyncio.get_running_loop()
        self._pending_text = text
        self._handle = loop.call_later(self.interval_ms / 1000.0, self._fire)
        logger.log_debounce("scheduled", text)

    def _fire(self) -> None:
        text = self._pending_text
        self._handle = None
        self._pending_text = None
        logger.log_debounce("fired", text)

        try:
            result = self.callback(text)
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)
        except Exception as e:
            # Error isolation - the debouncer keeps accepting input
            logger.error(f"Debounce callback failed: {e}")

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Debounce callback failed: {task.exception()}")

    def cancel(self) -> None:
        """Cancel the pending timer, if any. Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_text = None

    def close(self) -> None:
        """Teardown: cancel outstanding work and refuse further submissions."""
        self.cancel()
        self._closed = True
