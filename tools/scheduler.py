"""Cancellable delayed callbacks.

The card presenter and the speech service never sleep; they ask a scheduler to
run a callback later and keep the returned handle so that the pending work can
be cancelled when the session is torn down.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Handle for a single scheduled callback."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._lock = threading.Lock()
        self._cancelled = False
        self._done = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    def cancel(self) -> None:
        with self._lock:
            if self._done:
                return
            self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the callback has run or the timer was cancelled."""
        if self._timer is not None:
            self._timer.join(timeout)

    def _run(self) -> None:
        with self._lock:
            if self._cancelled or self._done:
                return
            self._done = True
        try:
            self._callback()
        except Exception:
            logger.exception("Scheduled callback failed")


class ThreadingScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        timer = threading.Timer(max(delay_ms, 0) / 1000.0, handle._run)
        timer.daemon = True
        handle._timer = timer
        timer.start()
        return handle


_default_scheduler: Optional[ThreadingScheduler] = None


def get_scheduler() -> ThreadingScheduler:
    """Return a module-level singleton scheduler."""
    global _default_scheduler
    if _default_scheduler is None:
        _default_scheduler = ThreadingScheduler()
    return _default_scheduler
