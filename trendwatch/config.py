"""Configuration primitives and static defaults for TrendWatch.

This module centralises application constants, the default feed
configuration, channel cadences and the session store settings so other
layers can import them without side effects beyond reading ``.env``.

Updates: v0.1 - 2026-09-14 - Extracted configuration and defaults into a standalone module.
Updates: v0.2 - 2026-10-02 - Added per-channel intervals and the feed config merge helper.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .models import FeedConfig
from .utils import read_bool_env, read_int_env, read_optional_env

load_dotenv()

logger = logging.getLogger(__name__)

# --- Channels and scoring defaults --------------------------------------------------------------

CHANNEL_SCORES = "scores"
CHANNEL_NEWS = "news"
CHANNEL_MARKET = "market"

# Channels whose content runs through scoring and breaking detection.
SCORED_CHANNELS: frozenset[str] = frozenset({CHANNEL_SCORES, CHANNEL_NEWS})

DEFAULT_REFRESH_INTERVAL_MS = 30_000
DEFAULT_TREND_THRESHOLD = 100.0
DEFAULT_BREAKING_WINDOW_MINUTES = 15
DEFAULT_TRENDING_LIMIT = 10
DEFAULT_CHANNELS: List[str] = [CHANNEL_SCORES, CHANNEL_NEWS, CHANNEL_MARKET]
DEFAULT_CHANNEL_INTERVALS_MS: Dict[str, int] = {
    CHANNEL_SCORES: 30_000,
    CHANNEL_NEWS: 300_000,
    CHANNEL_MARKET: 30_000,
}

# Lower bound keeps a misconfigured channel from spinning.
MIN_CHANNEL_INTERVAL_MS = 1_000

DEFAULT_FEED_CONFIG = FeedConfig(
    refresh_interval_ms=DEFAULT_REFRESH_INTERVAL_MS,
    trend_threshold=DEFAULT_TREND_THRESHOLD,
    breaking_window_minutes=DEFAULT_BREAKING_WINDOW_MINUTES,
    channels=list(DEFAULT_CHANNELS),
    channel_intervals_ms=dict(DEFAULT_CHANNEL_INTERVALS_MS),
    trending_limit=DEFAULT_TRENDING_LIMIT,
)

# --- Alert lifecycle ----------------------------------------------------------------------------

BREAKING_ALERT_MARKER = "breaking_alert_shown"
BREAKING_FALLBACK_HEADLINE = "Breaking News"
DISMISS_HOLD_MS = 500

# --- Environment --------------------------------------------------------------------------------

CONFIG_LOCATION = read_optional_env("TRENDWATCH_CONFIG")
CONTENT_URL = read_optional_env("TRENDWATCH_CONTENT_URL")
REDIS_URL = read_optional_env("REDIS_URL")
REDIS_SOCKET_TIMEOUT = read_int_env("TRENDWATCH_REDIS_TIMEOUT", 2, minimum=1)
SESSION_ID = read_optional_env("TRENDWATCH_SESSION_ID")
SESSION_TTL_SECONDS = read_int_env("TRENDWATCH_SESSION_TTL", 86_400, minimum=60)
SESSION_KEY_PREFIX = read_optional_env("TRENDWATCH_SESSION_PREFIX") or "trendwatch:session"
DEBUG_MODE = read_bool_env("TRENDWATCH_DEBUG")
HTTP_TIMEOUT = 15
USER_AGENT = "TrendWatch/0.2 (+https://example.invalid/trendwatch)"


def content_url_for(channel: str) -> Optional[str]:
    """Return the live endpoint for ``channel``, falling back to the shared one."""

    return read_optional_env(f"TRENDWATCH_CONTENT_URL_{channel.upper()}") or CONTENT_URL


# --- Feed config merging ------------------------------------------------------------------------

_KEY_ALIASES: Dict[str, str] = {
    "refreshIntervalMs": "refresh_interval_ms",
    "refresh_interval_ms": "refresh_interval_ms",
    "trendThreshold": "trend_threshold",
    "trend_threshold": "trend_threshold",
    "breakingWindowMinutes": "breaking_window_minutes",
    "breaking_window_minutes": "breaking_window_minutes",
    "channels": "channels",
    "channelIntervalsMs": "channel_intervals_ms",
    "channel_intervals_ms": "channel_intervals_ms",
    "trendingLimit": "trending_limit",
    "trending_limit": "trending_limit",
}


def _coerce_interval(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        numeric = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if numeric <= 0:
        return None
    return max(MIN_CHANNEL_INTERVAL_MS, numeric)


def _coerce_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        numeric = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return numeric if numeric > 0 else None


def _coerce_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    return numeric if math.isfinite(numeric) else None


def _coerce_channels(value: Any) -> Optional[List[str]]:
    if not isinstance(value, (list, tuple)):
        return None
    channels: List[str] = []
    for entry in value:
        if isinstance(entry, str) and entry.strip() and entry.strip() not in channels:
            channels.append(entry.strip())
    return channels or None


def merge_feed_config(
    overrides: Mapping[str, Any], base: FeedConfig = DEFAULT_FEED_CONFIG
) -> FeedConfig:
    """Apply overrides on top of ``base``; invalid values keep the base value."""

    values: Dict[str, Any] = {}
    for raw_key, value in overrides.items():
        key = _KEY_ALIASES.get(raw_key)
        if key is None:
            continue
        if key == "refresh_interval_ms":
            coerced: Any = _coerce_interval(value)
        elif key in ("breaking_window_minutes", "trending_limit"):
            coerced = _coerce_positive_int(value)
        elif key == "trend_threshold":
            coerced = _coerce_float(value)
        elif key == "channels":
            coerced = _coerce_channels(value)
        else:
            coerced = None
            if isinstance(value, Mapping):
                intervals = {
                    str(name): interval
                    for name, interval in (
                        (name, _coerce_interval(raw)) for name, raw in value.items()
                    )
                    if interval is not None
                }
                coerced = {**base.channel_intervals_ms, **intervals}
        if coerced is None:
            logger.warning("Ignoring invalid feed config value for '%s': %r", raw_key, value)
            continue
        values[key] = coerced

    return FeedConfig(
        refresh_interval_ms=values.get("refresh_interval_ms", base.refresh_interval_ms),
        trend_threshold=values.get("trend_threshold", base.trend_threshold),
        breaking_window_minutes=values.get(
            "breaking_window_minutes", base.breaking_window_minutes
        ),
        channels=list(values.get("channels", base.channels)),
        channel_intervals_ms=dict(
            values.get("channel_intervals_ms", base.channel_intervals_ms)
        ),
        trending_limit=values.get("trending_limit", base.trending_limit),
    )


__all__ = [
    "BREAKING_ALERT_MARKER",
    "BREAKING_FALLBACK_HEADLINE",
    "CHANNEL_MARKET",
    "CHANNEL_NEWS",
    "CHANNEL_SCORES",
    "CONFIG_LOCATION",
    "CONTENT_URL",
    "DEBUG_MODE",
    "DEFAULT_BREAKING_WINDOW_MINUTES",
    "DEFAULT_CHANNELS",
    "DEFAULT_CHANNEL_INTERVALS_MS",
    "DEFAULT_FEED_CONFIG",
    "DEFAULT_REFRESH_INTERVAL_MS",
    "DEFAULT_TREND_THRESHOLD",
    "DEFAULT_TRENDING_LIMIT",
    "DISMISS_HOLD_MS",
    "HTTP_TIMEOUT",
    "MIN_CHANNEL_INTERVAL_MS",
    "REDIS_SOCKET_TIMEOUT",
    "REDIS_URL",
    "SCORED_CHANNELS",
    "SESSION_ID",
    "SESSION_KEY_PREFIX",
    "SESSION_TTL_SECONDS",
    "USER_AGENT",
    "content_url_for",
    "merge_feed_config",
]
