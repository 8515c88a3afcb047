"""Delayed-callback primitives used by the scheduler and the alert dispatcher.

Controllers take an ``after(delay_ms, callback) -> handle`` /
``after_cancel(handle)`` pair, the same shape as Tk's scheduling calls, so a
deterministic fake can be injected in tests.

Updates: v0.1 - 2026-09-14 - Added a thread-pool backed timer loop.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Protocol

logger = logging.getLogger(__name__)


class Timers(Protocol):
    def after(self, delay_ms: int, callback: Callable[[], None]) -> object: ...

    def after_cancel(self, handle: object) -> None: ...


@dataclass(order=True)
class _TimerEntry:
    due: float
    seq: int
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class ThreadedTimers:
    """Single timing thread that hands due callbacks to a worker pool.

    Callbacks never run on the timing thread, so a slow callback delays
    neither the clock nor callbacks registered by other channels (as long as
    the pool has a free worker).
    """

    def __init__(self, max_workers: int = 8, *, name: str = "trendwatch-timers") -> None:
        self._queue: List[_TimerEntry] = []
        self._seq = itertools.count()
        self._condition = threading.Condition()
        self._closed = False
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix=f"{name}-worker"
        )
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def after(self, delay_ms: int, callback: Callable[[], None]) -> _TimerEntry:
        due = time.monotonic() + max(0, int(delay_ms)) / 1000.0
        entry = _TimerEntry(due, next(self._seq), callback)
        with self._condition:
            if self._closed:
                raise RuntimeError("Timers have been shut down")
            heapq.heappush(self._queue, entry)
            self._condition.notify()
        return entry

    def after_cancel(self, handle: object) -> None:
        if isinstance(handle, _TimerEntry):
            with self._condition:
                handle.cancelled = True

    def _next_due(self) -> Optional[_TimerEntry]:
        # Caller holds the condition.
        while not self._closed:
            while self._queue and self._queue[0].cancelled:
                heapq.heappop(self._queue)
            if not self._queue:
                self._condition.wait()
                continue
            wait = self._queue[0].due - time.monotonic()
            if wait > 0:
                self._condition.wait(timeout=wait)
                continue
            return heapq.heappop(self._queue)
        return None

    def _run(self) -> None:
        while True:
            with self._condition:
                entry = self._next_due()
            if entry is None:
                return
            try:
                self._executor.submit(self._invoke, entry.callback)
            except RuntimeError:
                return

    @staticmethod
    def _invoke(callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception:
            logger.exception("Timer callback failed")

    def shutdown(self, *, wait: bool = True) -> None:
        """Drop pending callbacks; optionally wait for running ones to finish."""

        with self._condition:
            self._closed = True
            self._queue.clear()
            self._condition.notify_all()
        self._thread.join(timeout=5)
        self._executor.shutdown(wait=wait)


__all__ = ["ThreadedTimers", "Timers"]
