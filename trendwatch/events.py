"""Typed publish/subscribe bus for TrendWatch domain events.

The bus carries a closed set of event names, each with a fixed payload shape.
Presentation collaborators subscribe to alert and sync events; the alert
dispatcher subscribes to inbound ``notification:send`` messages.

Updates: v0.1 - 2026-09-14 - Replaced the loosely typed global bus with an injected instance.
Updates: v0.2 - 2026-10-02 - Added one-shot subscriptions and bounded publish history.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Literal, Mapping, Optional, TypedDict

logger = logging.getLogger(__name__)

EventName = Literal[
    "breaking:detected",
    "alert:triggered",
    "alert:dismissed",
    "sync:complete",
    "notification:send",
]

BREAKING_DETECTED: EventName = "breaking:detected"
ALERT_TRIGGERED: EventName = "alert:triggered"
ALERT_DISMISSED: EventName = "alert:dismissed"
SYNC_COMPLETE: EventName = "sync:complete"
NOTIFICATION_SEND: EventName = "notification:send"

EVENT_NAMES: frozenset[str] = frozenset(
    {BREAKING_DETECTED, ALERT_TRIGGERED, ALERT_DISMISSED, SYNC_COMPLETE, NOTIFICATION_SEND}
)

HISTORY_LIMIT = 100


class BreakingDetectedPayload(TypedDict):
    itemId: str
    headline: str
    detectedAt: int


class AlertTriggeredPayload(TypedDict):
    id: str
    level: str
    headline: str
    timestamp: int


class AlertDismissedPayload(TypedDict):
    id: str


class SyncCompletePayload(TypedDict):
    channel: str
    timestamp: int


class NotificationSendPayload(TypedDict, total=False):
    title: str
    message: str
    type: str


Subscriber = Callable[[Mapping[str, Any]], None]


@dataclass(frozen=True)
class PublishedEvent:
    name: str
    payload: Mapping[str, Any]
    delivered: int


@dataclass
class _Subscription:
    token: int
    event: str
    callback: Subscriber
    once: bool = False


class EventBus:
    """Thread-safe synchronous event bus.

    Callbacks run on the publishing thread, outside the bus lock, in
    subscription order. A failing callback is logged and skipped.
    """

    def __init__(self, *, history_limit: int = HISTORY_LIMIT) -> None:
        self._lock = threading.Lock()
        self._subscriptions: Dict[str, List[_Subscription]] = {}
        self._tokens = itertools.count(1)
        self._history: Deque[PublishedEvent] = deque(maxlen=max(1, history_limit))
        self.error_count = 0

    @staticmethod
    def _check_name(event: str) -> None:
        if event not in EVENT_NAMES:
            raise ValueError(f"Unknown event name '{event}'.")

    def subscribe(self, event: EventName, callback: Subscriber, *, once: bool = False) -> int:
        """Register ``callback`` for ``event``; returns an unsubscribe token."""

        self._check_name(event)
        with self._lock:
            subscription = _Subscription(next(self._tokens), event, callback, once)
            self._subscriptions.setdefault(event, []).append(subscription)
        logger.debug("Subscribed token %s to '%s'", subscription.token, event)
        return subscription.token

    def once(self, event: EventName, callback: Subscriber) -> int:
        return self.subscribe(event, callback, once=True)

    def unsubscribe(self, token: int) -> bool:
        with self._lock:
            for event, subscriptions in self._subscriptions.items():
                for subscription in subscriptions:
                    if subscription.token == token:
                        subscriptions.remove(subscription)
                        if not subscriptions:
                            del self._subscriptions[event]
                        return True
        return False

    def subscriber_count(self, event: Optional[EventName] = None) -> int:
        with self._lock:
            if event is not None:
                return len(self._subscriptions.get(event, ()))
            return sum(len(subs) for subs in self._subscriptions.values())

    def publish(self, event: EventName, payload: Mapping[str, Any]) -> int:
        """Deliver ``payload`` to subscribers of ``event``; returns delivery count."""

        self._check_name(event)
        with self._lock:
            targets = list(self._subscriptions.get(event, ()))
            one_shot = [sub for sub in targets if sub.once]
            if one_shot:
                remaining = [sub for sub in targets if not sub.once]
                if remaining:
                    self._subscriptions[event] = remaining
                else:
                    self._subscriptions.pop(event, None)

        delivered = 0
        for subscription in targets:
            try:
                subscription.callback(payload)
            except Exception:
                with self._lock:
                    self.error_count += 1
                logger.exception(
                    "Subscriber %s failed while handling '%s'", subscription.token, event
                )
                continue
            delivered += 1

        with self._lock:
            self._history.append(PublishedEvent(event, dict(payload), delivered))
        logger.debug("Published '%s' to %s subscriber(s)", event, delivered)
        return delivered

    def history(self, event: Optional[EventName] = None) -> List[PublishedEvent]:
        with self._lock:
            entries = list(self._history)
        if event is None:
            return entries
        return [entry for entry in entries if entry.name == event]

    def clear(self) -> None:
        with self._lock:
            self._subscriptions.clear()
            self._history.clear()


__all__ = [
    "ALERT_DISMISSED",
    "ALERT_TRIGGERED",
    "AlertDismissedPayload",
    "AlertTriggeredPayload",
    "BREAKING_DETECTED",
    "BreakingDetectedPayload",
    "EVENT_NAMES",
    "EventBus",
    "EventName",
    "HISTORY_LIMIT",
    "NOTIFICATION_SEND",
    "NotificationSendPayload",
    "PublishedEvent",
    "SYNC_COMPLETE",
    "Subscriber",
    "SyncCompletePayload",
]
