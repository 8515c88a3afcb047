"""Trend scoring and ranking for content items.

A trend score combines a linear recency decay (100 points at publish time,
minus five per hour, floored at zero) with raw engagement where likes count
double. Scores are recomputed on every pass and never stored.

Updates: v0.1 - 2026-09-14 - Extracted scoring from the channel refresh workflow.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from .models import ContentItem, TrendScore, utc_now

RECENCY_MAX = 100.0
RECENCY_DECAY_PER_HOUR = 5.0
LIKE_WEIGHT = 2
_MS_PER_HOUR = 3_600_000

ScoredItem = Tuple[ContentItem, TrendScore]


def age_hours(item: ContentItem, now: datetime) -> float:
    """Hours since publish; future timestamps clamp to zero."""

    elapsed_ms = (now - item.published_at).total_seconds() * 1000.0
    return max(0.0, elapsed_ms / _MS_PER_HOUR)


def recency_score(item: ContentItem, now: datetime) -> float:
    return max(0.0, RECENCY_MAX - age_hours(item, now) * RECENCY_DECAY_PER_HOUR)


def engagement_score(item: ContentItem) -> float:
    return float(item.views + item.likes * LIKE_WEIGHT)


def score(item: ContentItem, now: Optional[datetime] = None) -> TrendScore:
    reference = now or utc_now()
    recency = recency_score(item, reference)
    engagement = engagement_score(item)
    return TrendScore(
        item_id=item.id,
        recency_score=recency,
        engagement_score=engagement,
        total=recency + engagement,
    )


def _rank_key(entry: ScoredItem) -> Tuple[float, datetime, str]:
    item, trend = entry
    # Earlier publish wins a tie; id keeps the order total.
    return (-trend.total, item.published_at, item.id)


def rank(items: Iterable[ContentItem], now: Optional[datetime] = None) -> List[ScoredItem]:
    """Score ``items`` and order them by total descending."""

    reference = now or utc_now()
    scored = [(item, score(item, reference)) for item in items]
    scored.sort(key=_rank_key)
    return scored


def select_trending(
    items: Iterable[ContentItem],
    threshold: float,
    limit: int,
    now: Optional[datetime] = None,
) -> List[ScoredItem]:
    """Return at most ``limit`` ranked items whose total exceeds ``threshold``."""

    if limit <= 0:
        return []
    ranked = rank(items, now)
    return [entry for entry in ranked if entry[1].total > threshold][:limit]


__all__ = [
    "LIKE_WEIGHT",
    "RECENCY_DECAY_PER_HOUR",
    "RECENCY_MAX",
    "ScoredItem",
    "age_hours",
    "engagement_score",
    "rank",
    "recency_score",
    "score",
    "select_trending",
]
