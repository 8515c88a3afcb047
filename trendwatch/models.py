"""Domain models backing the TrendWatch alert core.

This module collects the dataclasses shared by scoring, breaking detection,
alert dispatch and channel scheduling so the layers can import them without
pulling in any I/O.

Updates: v0.1 - 2026-09-14 - Extracted content, score and alert models.
Updates: v0.2 - 2026-10-02 - Added feed configuration and fetch result models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional

from .utils import coerce_count, parse_timestamp


@dataclass(frozen=True)
class AppMetadata:
    name: str
    version: str
    description: str


@dataclass(frozen=True)
class ContentItem:
    """Immutable snapshot of a content item as supplied by a content source."""

    id: str
    published_at: datetime
    views: int = 0
    likes: int = 0
    tags: FrozenSet[str] = field(default_factory=frozenset)
    title: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Optional["ContentItem"]:
        """Parse a JSON mapping; return ``None`` for malformed entries."""

        raw_id = payload.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)):
            return None
        item_id = str(raw_id).strip()
        if not item_id:
            return None
        published_at = parse_timestamp(
            payload.get("publishedAt", payload.get("published_at"))
        )
        if published_at is None:
            return None
        views = coerce_count(payload.get("views"))
        likes = coerce_count(payload.get("likes"))
        if views is None or likes is None:
            return None

        raw_tags = payload.get("tags") or ()
        if isinstance(raw_tags, str):
            raw_tags = (raw_tags,)
        tags = frozenset(
            tag.strip() for tag in raw_tags if isinstance(tag, str) and tag.strip()
        )
        title = payload.get("title") if isinstance(payload.get("title"), str) else ""
        return cls(
            id=item_id,
            published_at=published_at,
            views=views,
            likes=likes,
            tags=tags,
            title=title.strip(),
        )


@dataclass(frozen=True)
class TrendScore:
    item_id: str
    recency_score: float
    engagement_score: float
    total: float


class AlertLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    DISMISSED = "Dismissed"


@dataclass
class AlertRecord:
    """Alert owned by the dispatcher; only ``status`` changes after creation."""

    id: str
    level: AlertLevel
    headline: str
    created_at: datetime
    status: AlertStatus = AlertStatus.PENDING


@dataclass(frozen=True)
class AlertCandidate:
    headline: str
    level: AlertLevel = AlertLevel.CRITICAL
    alert_id: Optional[str] = None


ChannelHandler = Callable[[], Any]


@dataclass
class ChannelState:
    """Per-channel scheduling state, written only by the channel's own tick."""

    name: str
    interval_ms: int
    handler: ChannelHandler
    last_sync_at: Optional[datetime] = None
    tick_count: int = 0
    failure_count: int = 0

    def mark_synced(self, timestamp: datetime) -> datetime:
        if self.last_sync_at is not None and timestamp < self.last_sync_at:
            timestamp = self.last_sync_at
        self.last_sync_at = timestamp
        return timestamp


@dataclass(frozen=True)
class ChannelDefinition:
    name: str
    interval_ms: int
    handler: ChannelHandler


@dataclass(frozen=True)
class FeedConfig:
    refresh_interval_ms: int
    trend_threshold: float
    breaking_window_minutes: int
    channels: List[str]
    channel_intervals_ms: Dict[str, int]
    trending_limit: int = 10

    def interval_for(self, channel: str) -> int:
        return int(self.channel_intervals_ms.get(channel, self.refresh_interval_ms))

    def to_payload(self) -> Dict[str, Any]:
        return {
            "refreshIntervalMs": self.refresh_interval_ms,
            "trendThreshold": self.trend_threshold,
            "breakingWindowMinutes": self.breaking_window_minutes,
            "channels": list(self.channels),
            "channelIntervalsMs": dict(self.channel_intervals_ms),
            "trendingLimit": self.trending_limit,
        }


@dataclass(frozen=True)
class ContentFetchResult:
    items: List[ContentItem]
    from_fallback: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "AppMetadata",
    "AlertCandidate",
    "AlertLevel",
    "AlertRecord",
    "AlertStatus",
    "ChannelDefinition",
    "ChannelHandler",
    "ChannelState",
    "ContentFetchResult",
    "ContentItem",
    "FeedConfig",
    "TrendScore",
    "utc_now",
]
