"""Content source providers for TrendWatch channels.

Updates: v0.1 - 2026-09-14 - Introduced explicit content sources to replace
silent fallback-to-mock behaviour. The live fetcher reports failures through
``ContentFetchResult.error`` and ``FallbackContentSource`` picks the static
set based on that outcome.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

import requests

from ...config import CHANNEL_MARKET, CHANNEL_NEWS, CHANNEL_SCORES, HTTP_TIMEOUT
from ...http_client import fetch_json
from ...models import ContentFetchResult, ContentItem, utc_now

logger = logging.getLogger(__name__)


class ContentSource(Protocol):
    def fetch(self) -> ContentFetchResult: ...


def parse_content_items(payload: Any) -> List[ContentItem]:
    """Parse a JSON list (or ``{"items": [...]}``), skipping malformed entries."""

    entries = payload.get("items") if isinstance(payload, Mapping) else payload
    if not isinstance(entries, list):
        raise ValueError("content payload is not a list of items")
    items: List[ContentItem] = []
    skipped = 0
    for entry in entries:
        item = ContentItem.from_dict(entry) if isinstance(entry, Mapping) else None
        if item is None:
            skipped += 1
            continue
        items.append(item)
    if skipped:
        logger.debug("Skipped %s malformed content item(s).", skipped)
    return items


class LiveContentSource:
    """Fetch content items from a JSON endpoint through the shared session."""

    def __init__(self, url: str, *, timeout: float = HTTP_TIMEOUT) -> None:
        self.url = url
        self.timeout = timeout

    def fetch(self) -> ContentFetchResult:
        try:
            payload = fetch_json(self.url, timeout=self.timeout)
            items = parse_content_items(payload)
        except (requests.RequestException, ValueError) as exc:
            return ContentFetchResult(items=[], error=str(exc))
        logger.debug("Fetched %s item(s) from %s", len(items), self.url)
        return ContentFetchResult(items=items)


class StaticContentSource:
    """Serve a fixed item set, re-stamped relative to the current time."""

    def __init__(
        self,
        templates: Sequence[ContentItem],
        *,
        clock: Callable[[], datetime] = utc_now,
        anchor: Optional[datetime] = None,
    ) -> None:
        self._templates = list(templates)
        self._clock = clock
        # Templates are authored relative to ``anchor``; ages are preserved.
        self._anchor = anchor

    def fetch(self) -> ContentFetchResult:
        if self._anchor is None:
            return ContentFetchResult(items=list(self._templates))
        shift = self._clock() - self._anchor
        items = [replace(item, published_at=item.published_at + shift) for item in self._templates]
        return ContentFetchResult(items=items)


class FallbackContentSource:
    """Use ``primary`` unless its result reports an error, then ``fallback``."""

    def __init__(self, primary: ContentSource, fallback: ContentSource, *, label: str = "") -> None:
        self.primary = primary
        self.fallback = fallback
        self.label = label

    def fetch(self) -> ContentFetchResult:
        result = self.primary.fetch()
        if result.ok:
            return result
        logger.warning(
            "Content fetch failed%s, using default items: %s",
            f" for '{self.label}'" if self.label else "",
            result.error,
        )
        fallback = self.fallback.fetch()
        return ContentFetchResult(items=fallback.items, from_fallback=True, error=result.error)


# --- Static default sets -----------------------------------------------------------------------

_DEFAULT_ANCHOR = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _template(
    item_id: str, title: str, minutes_old: int, views: int, likes: int, tags: Iterable[str] = ()
) -> ContentItem:
    return ContentItem(
        id=item_id,
        published_at=_DEFAULT_ANCHOR - timedelta(minutes=minutes_old),
        views=views,
        likes=likes,
        tags=frozenset(tags),
        title=title,
    )


DEFAULT_CONTENT: Dict[str, List[ContentItem]] = {
    CHANNEL_NEWS: [
        _template("news-default-1", "Championship Final Set for Sunday", 60, 420, 35, ("football",)),
        _template("news-default-2", "Star Player Breaks Record", 120, 310, 28, ("records",)),
        _template("news-default-3", "Transfer Window Updates", 180, 150, 9, ("transfers",)),
    ],
    CHANNEL_SCORES: [
        _template("scores-default-1", "Lakers 102-98 Warriors (Q4 2:30)", 30, 90, 12, ("nba", "live")),
        _template("scores-default-2", "Man City 2-2 Liverpool (FT)", 95, 260, 40, ("premier league",)),
        _template("scores-default-3", "Chiefs 24-21 Bills (Live)", 45, 130, 18, ("nfl", "live")),
    ],
    CHANNEL_MARKET: [
        _template("market-default-1", "Transfer market opens", 240, 80, 4, ("market",)),
    ],
}


def default_source_for(
    channel: str, *, clock: Callable[[], datetime] = utc_now
) -> StaticContentSource:
    return StaticContentSource(
        DEFAULT_CONTENT.get(channel, []), clock=clock, anchor=_DEFAULT_ANCHOR
    )


def build_content_source(
    channel: str, url: Optional[str], *, clock: Callable[[], datetime] = utc_now
) -> ContentSource:
    """Live source with static fallback when ``url`` is set, else static only."""

    fallback = default_source_for(channel, clock=clock)
    if not url:
        return fallback
    return FallbackContentSource(LiveContentSource(url), fallback, label=channel)


__all__ = [
    "ContentSource",
    "DEFAULT_CONTENT",
    "FallbackContentSource",
    "LiveContentSource",
    "StaticContentSource",
    "build_content_source",
    "default_source_for",
    "parse_content_items",
]
