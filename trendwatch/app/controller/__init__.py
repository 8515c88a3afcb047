"""Controller package re-exports.

Updates: v0.1 - 2026-09-14 - Introduced alert, scheduler and feed refresh controllers.
"""
from __future__ import annotations

from .alert_controller import AlertDispatcher
from .channel_scheduler import ChannelScheduler
from .feed_refresh_controller import FeedRefreshController

__all__ = [
    "AlertDispatcher",
    "ChannelScheduler",
    "FeedRefreshController",
]
