"""Main (UI) execution context.

Driver backends call back from their own threads. Anything that mutates
view-model state is posted here and executed by whichever thread drives
the context (process_pending / run_until), which plays the role of the
UI thread.
"""
from __future__ import annotations

import heapq
import itertools
import logging
import queue
import threading
import time
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_RUN_INTERVAL = 0.05  # seconds


class TimerHandle:
    """Handle for a call scheduled with MainContext.call_later."""

    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class MainContext:
    """Single-threaded executor for view-model work.

    post() and call_later() are thread-safe. Work only runs inside
    process_pending(), on the calling thread.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._queue: queue.Queue[Callable[[], None]] = queue.Queue()
        self._timers: List[Tuple[float, int, TimerHandle]] = []
        self._timer_lock = threading.Lock()
        self._sequence = itertools.count()
        self._wakeup = threading.Event()

    def post(self, callback: Callable[[], None]) -> None:
        """Queue a callable to run on the main context."""
        self._queue.put(callback)
        self._wakeup.set()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule a callable to run after delay seconds.

        Returns:
            TimerHandle that can cancel the call before it runs
        """
        handle = TimerHandle(self._clock() + max(0.0, delay), callback)
        with self._timer_lock:
            heapq.heappush(self._timers, (handle.when, next(self._sequence), handle))
        self._wakeup.set()
        return handle

    def process_pending(self) -> int:
        """Run all queued callables and all timers that are due.

        Returns:
            Number of callables executed
        """
        executed = 0
        while True:
            batch = self._drain_queue() + self._pop_due_timers()
            if not batch:
                break
            for callback in batch:
                self._run(callback)
                executed += 1
        return executed

    def run_until(self,
                  predicate: Callable[[], bool],
                  timeout: Optional[float] = None,
                  interval: float = DEFAULT_RUN_INTERVAL) -> bool:
        """Process work until predicate() is true or timeout expires.

        Returns:
            Final value of predicate()
        """
        deadline = None if timeout is None else self._clock() + timeout
        while True:
            self.process_pending()
            if predicate():
                return True
            if deadline is not None and self._clock() >= deadline:
                return False
            self._wakeup.wait(interval)
            self._wakeup.clear()

    @property
    def pending_timers(self) -> int:
        with self._timer_lock:
            return sum(1 for _, _, handle in self._timers if not handle.cancelled)

    def _drain_queue(self) -> List[Callable[[], None]]:
        batch = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except queue.Empty:
                return batch

    def _pop_due_timers(self) -> List[Callable[[], None]]:
        now = self._clock()
        due = []
        with self._timer_lock:
            while self._timers and self._timers[0][0] <= now:
                _, _, handle = heapq.heappop(self._timers)
                if not handle.cancelled:
                    due.append(handle.callback)
        return due

    def _run(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.error(f"Error in main context callback: {e}", exc_info=True)
