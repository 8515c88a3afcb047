"""Utility helpers shared across TrendWatch modules.

Updates: v0.1 - 2026-09-14 - Seeded module with environment and timestamp helpers.
Updates: v0.2 - 2026-10-02 - Added epoch millisecond conversion and count coercion.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Optional

_TRUTHY = {"1", "true", "yes", "on"}


def read_optional_env(name: str) -> Optional[str]:
    """Return trimmed environment variable or ``None`` when unset/blank."""

    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def read_bool_env(name: str, default: bool = False) -> bool:
    value = read_optional_env(name)
    if value is None:
        return default
    return value.lower() in _TRUTHY


def read_int_env(name: str, default: int, *, minimum: int = 0) -> int:
    value = read_optional_env(name)
    if value is None:
        return default
    try:
        return max(minimum, int(value))
    except ValueError:
        return default


def parse_iso8601_utc(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO-8601 strings into aware UTC datetimes."""

    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        timestamp = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def from_epoch_millis(value: float) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def epoch_millis(timestamp: datetime) -> int:
    """Return epoch milliseconds for an aware (or UTC-naive) datetime."""

    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return int(timestamp.timestamp() * 1000)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept datetimes, ISO-8601 text or epoch milliseconds."""

    if isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)):
        return from_epoch_millis(value)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return from_epoch_millis(int(text))
        return parse_iso8601_utc(text)
    return None


def coerce_count(value: Any) -> Optional[int]:
    """Return a non-negative engagement counter or ``None`` when invalid."""

    if isinstance(value, bool) or value is None:
        return None
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if count < 0:
        return None
    return count


__all__ = [
    "coerce_count",
    "epoch_millis",
    "from_epoch_millis",
    "parse_iso8601_utc",
    "parse_timestamp",
    "read_bool_env",
    "read_int_env",
    "read_optional_env",
]
