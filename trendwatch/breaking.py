"""Breaking-news qualification.

Two independent paths can flag an item as breaking: a recency window (the
item was published within the last ``window_minutes``) and an explicit tag
containing "breaking". Neither consults the trend score, so an old but popular
item never becomes breaking here.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .config import DEFAULT_BREAKING_WINDOW_MINUTES
from .models import ContentItem, utc_now

BREAKING_TAG_PATTERN = re.compile("breaking", re.IGNORECASE)


def _newest_first(items: Iterable[ContentItem]) -> List[ContentItem]:
    return sorted(items, key=lambda item: (item.published_at, item.id), reverse=True)


def detect_breaking(
    items: Iterable[ContentItem],
    now: Optional[datetime] = None,
    window_minutes: int = DEFAULT_BREAKING_WINDOW_MINUTES,
) -> Optional[ContentItem]:
    """Return the most recent item published inside the breaking window."""

    reference = now or utc_now()
    window = timedelta(minutes=window_minutes)
    qualifying = [
        item for item in _newest_first(items) if reference - item.published_at < window
    ]
    return qualifying[0] if qualifying else None


def is_breaking_tagged(item: ContentItem) -> bool:
    return any(BREAKING_TAG_PATTERN.search(tag) for tag in item.tags)


def find_breaking_tagged(items: Iterable[ContentItem]) -> Optional[ContentItem]:
    """Return the most recent item carrying a breaking tag, if any."""

    for item in _newest_first(items):
        if is_breaking_tagged(item):
            return item
    return None


__all__ = [
    "BREAKING_TAG_PATTERN",
    "detect_breaking",
    "find_breaking_tagged",
    "is_breaking_tagged",
]
