"""cache_table.core.scheduler
===========================
One-shot, re-armable scheduling of expiration sweeps.

Each table owns one :class:`ExpirationScheduler`. Sweeps never run on the
caller's thread: :meth:`~ExpirationScheduler.trigger` and a firing timer
both enqueue the sweep on a single-worker thread pool, so at most one sweep
for a table is running at any time. The timer itself only enqueues, it
never calls into the table.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)


class SweepScheduler(Protocol):
    """Behaviour contract the table relies on (handy for test fakes)."""

    def trigger(self) -> None: ...

    def arm(self, delay: float) -> None: ...

    def cancel(self) -> None: ...

    def close(self) -> None: ...


class ExpirationScheduler:
    """Runs *sweep* on a private worker, now or after a delay."""

    def __init__(self, sweep: Callable[[], None], *, name: str = "cache-sweep") -> None:
        self._sweep = sweep
        self._name = name
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._executor: Optional[ThreadPoolExecutor] = None
        self._closed = False

    def trigger(self) -> None:
        """Cancel any armed timer and enqueue a sweep immediately."""
        with self._lock:
            self._cancel_timer()
            self._submit()

    def arm(self, delay: float) -> None:
        """Schedule one sweep *delay* seconds from now, replacing any armed timer."""
        with self._lock:
            if self._closed:
                return
            self._cancel_timer()
            timer = threading.Timer(delay, self._fire)
            timer.name = f"{self._name}-timer"
            timer.daemon = True
            self._timer = timer
            timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_timer()

    def close(self) -> None:
        """Cancel the timer and stop the worker; further triggers are ignored."""
        with self._lock:
            self._closed = True
            self._cancel_timer()
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _fire(self) -> None:
        with self._lock:
            if self._timer is not threading.current_thread():
                # cancelled or re-armed after this timer was already running
                return
            self._timer = None
            self._submit()

    def _cancel_timer(self) -> None:
        # caller holds self._lock
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _submit(self) -> None:
        # caller holds self._lock
        if self._closed:
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=self._name)
        future = self._executor.submit(self._sweep)
        future.add_done_callback(self._report_failure)

    def _report_failure(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            log.error("Expiration sweep %s failed", self._name, exc_info=exc)
