"""Feed refresh controller: per-channel fetch, scoring and breaking hand-off.

Updates:
- v0.1 - 2026-09-14 - Moved trending selection and breaking scan out of the
  per-widget refresh loops.
- v0.2 - 2026-10-02 - Breaking announcements are now remembered per item id.
- v0.3 - 2026-10-19 - Announced ids are dropped once the item leaves the feed.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, List, Set

from ...breaking import detect_breaking, find_breaking_tagged
from ...config import BREAKING_FALLBACK_HEADLINE
from ...events import BREAKING_DETECTED, BreakingDetectedPayload, EventBus
from ...models import AlertCandidate, AlertLevel, ContentItem, FeedConfig, utc_now
from ...scoring import ScoredItem, select_trending
from ...utils import epoch_millis
from ..services.content_service import ContentSource
from .alert_controller import AlertDispatcher

logger = logging.getLogger(__name__)


class FeedRefreshController:
    """Channel handler that refreshes one content source.

    With ``analyze`` enabled (news and scores channels) each refresh ranks the
    items into a trending list, announces newly seen breaking items and offers
    them to the dispatcher. Other channels only refresh their snapshot.
    """

    def __init__(
        self,
        channel: str,
        source: ContentSource,
        bus: EventBus,
        dispatcher: AlertDispatcher,
        config: FeedConfig,
        *,
        analyze: bool = True,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.channel = channel
        self._source = source
        self._bus = bus
        self._dispatcher = dispatcher
        self._config = config
        self._analyze = analyze
        self._clock = clock
        self._lock = threading.Lock()
        self._items: List[ContentItem] = []
        self._trending: List[ScoredItem] = []
        self._announced: Set[str] = set()
        self.last_from_fallback = False

    def __call__(self) -> None:
        self.refresh()

    # Accessors for presentation collaborators

    @property
    def items(self) -> List[ContentItem]:
        with self._lock:
            return list(self._items)

    @property
    def trending(self) -> List[ScoredItem]:
        with self._lock:
            return list(self._trending)

    # Refresh workflow

    def refresh(self) -> None:
        result = self._source.fetch()
        now = self._clock()
        trending: List[ScoredItem] = []
        if self._analyze:
            trending = select_trending(
                result.items,
                self._config.trend_threshold,
                self._config.trending_limit,
                now,
            )
        with self._lock:
            self._items = list(result.items)
            self._trending = trending
            self.last_from_fallback = result.from_fallback
        logger.debug(
            "Channel '%s' refreshed %s item(s), %s trending%s",
            self.channel,
            len(result.items),
            len(trending),
            " (defaults)" if result.from_fallback else "",
        )
        if self._analyze:
            self._scan_breaking(result.items, now)

    def _scan_breaking(self, items: List[ContentItem], now: datetime) -> None:
        self._forget_missing(items)
        recent = detect_breaking(items, now, self._config.breaking_window_minutes)
        if recent is not None and self._mark_announced(recent):
            headline = recent.title or BREAKING_FALLBACK_HEADLINE
            logger.info("Breaking item %s detected on '%s': %s", recent.id, self.channel, headline)
            payload: BreakingDetectedPayload = {
                "itemId": recent.id,
                "headline": headline,
                "detectedAt": epoch_millis(now),
            }
            self._bus.publish(BREAKING_DETECTED, payload)
            self._dispatcher.trigger(
                AlertCandidate(headline=headline, level=AlertLevel.CRITICAL)
            )

        tagged = find_breaking_tagged(items)
        if tagged is not None:
            self._dispatcher.trigger_page_level(tagged.title or BREAKING_FALLBACK_HEADLINE)

    def _forget_missing(self, items: List[ContentItem]) -> None:
        # Only ids present in the latest snapshot are remembered.
        current = {item.id for item in items}
        with self._lock:
            self._announced &= current

    def _mark_announced(self, item: ContentItem) -> bool:
        with self._lock:
            if item.id in self._announced:
                return False
            self._announced.add(item.id)
            return True


__all__ = ["FeedRefreshController"]
