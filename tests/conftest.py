"""Pytest configuration and shared fixtures.

- Prepend project root to sys.path so 'trendwatch' is importable with testpaths.
- Provide a deterministic virtual-time implementation of the timer protocol.
"""

from __future__ import annotations

import heapq
import itertools
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Any

import pytest


def _ensure_project_root_on_syspath() -> None:
    """Prepend repository root to sys.path for package imports."""
    tests_dir = Path(__file__).resolve().parent
    project_root = tests_dir.parent
    root_str = str(project_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_syspath()

from trendwatch.cache import DedupMarker, InMemorySessionStore  # noqa: E402
from trendwatch.config import BREAKING_ALERT_MARKER  # noqa: E402
from trendwatch.events import EventBus  # noqa: E402
from trendwatch.models import ContentItem  # noqa: E402

BASE_TIME = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class FakeTimers:
    """Virtual clock implementing ``after``/``after_cancel``.

    ``advance`` fires every callback due up to the target time in due order,
    including callbacks registered while advancing.
    """

    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.start = start
        self.now_ms = 0
        self._queue: List[list] = []
        self._seq = itertools.count()

    def after(self, delay_ms: int, callback: Callable[[], None]) -> list:
        entry = [self.now_ms + max(0, int(delay_ms)), next(self._seq), callback, False]
        heapq.heappush(self._queue, entry)
        return entry

    def after_cancel(self, handle: list) -> None:
        handle[3] = True

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[3])

    def clock(self) -> datetime:
        return self.start + timedelta(milliseconds=self.now_ms)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while self._queue and self._queue[0][0] <= target:
            due, _seq, callback, cancelled = heapq.heappop(self._queue)
            if cancelled:
                continue
            self.now_ms = due
            callback()
        self.now_ms = target


class EventRecorder:
    def __init__(self, bus: EventBus, *names: str) -> None:
        self.events: List[tuple[str, Mapping[str, Any]]] = []
        for name in names:
            bus.subscribe(name, lambda payload, name=name: self.events.append((name, payload)))

    def named(self, name: str) -> List[Mapping[str, Any]]:
        return [payload for event, payload in self.events if event == name]


@pytest.fixture
def now() -> datetime:
    return BASE_TIME


@pytest.fixture
def make_item(now: datetime) -> Callable[..., ContentItem]:
    def _make(
        item_id: str = "item",
        *,
        minutes_old: float = 0,
        views: int = 0,
        likes: int = 0,
        tags: Iterable[str] = (),
        title: str = "",
    ) -> ContentItem:
        return ContentItem(
            id=item_id,
            published_at=now - timedelta(minutes=minutes_old),
            views=views,
            likes=likes,
            tags=frozenset(tags),
            title=title,
        )

    return _make


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus: EventBus) -> EventRecorder:
    return EventRecorder(
        bus, "breaking:detected", "alert:triggered", "alert:dismissed", "sync:complete"
    )


@pytest.fixture
def timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def marker(session_store: InMemorySessionStore) -> DedupMarker:
    return DedupMarker(session_store, BREAKING_ALERT_MARKER)
