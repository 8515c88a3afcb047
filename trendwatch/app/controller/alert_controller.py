"""Alert dispatcher: owner of the single active alert slot.

Updates:
- v0.1 - 2026-09-14 - Moved alert stacking guard and dismiss teardown here.
- v0.2 - 2026-10-02 - Page-level trigger now reads an injected dedup marker.
- v0.3 - 2026-10-19 - Lifecycle events go through an ordered outbox.
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Mapping, Optional, Tuple

from ...cache import DedupMarker
from ...config import BREAKING_FALLBACK_HEADLINE
from ...events import (
    ALERT_DISMISSED,
    ALERT_TRIGGERED,
    NOTIFICATION_SEND,
    AlertDismissedPayload,
    AlertTriggeredPayload,
    EventBus,
)
from ...models import AlertCandidate, AlertLevel, AlertRecord, AlertStatus, utc_now
from ...utils import epoch_millis
from ..timers import Timers

logger = logging.getLogger(__name__)

_NOTIFICATION_LEVELS = {
    "error": AlertLevel.CRITICAL,
    "critical": AlertLevel.CRITICAL,
    "warning": AlertLevel.WARNING,
}


class AlertDispatcher:
    """Enforces at most one active alert, with per-session page-level dedup.

    ``trigger`` and ``trigger_page_level`` may be called concurrently from
    channel ticks and from user actions; the slot and the dedup marker are only
    read and written under ``self._lock``. Lifecycle events are queued under the
    lock as the slot changes and published after it is released, in queue
    order, so subscribers may call back into the dispatcher.
    """

    def __init__(
        self,
        bus: EventBus,
        marker: DedupMarker,
        *,
        timers: Optional[Timers] = None,
        dismiss_hold_ms: int = 0,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._bus = bus
        self._marker = marker
        self._timers = timers
        self._dismiss_hold_ms = max(0, int(dismiss_hold_ms))
        self._clock = clock
        self._lock = threading.Lock()
        self._active: Optional[AlertRecord] = None
        self._sequence = itertools.count(1)
        self._notification_token: Optional[int] = None
        self._outbox: Deque[Tuple[str, Mapping[str, Any]]] = deque()
        self._draining = False

    # State

    @property
    def active_alert(self) -> Optional[AlertRecord]:
        with self._lock:
            return self._active

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._active is not None and self._active.status is AlertStatus.ACTIVE

    # Transitions

    def _new_id(self, created_at: datetime) -> str:
        return f"brk_{epoch_millis(created_at)}_{next(self._sequence)}"

    def _claim_slot(self, candidate: AlertCandidate) -> Optional[AlertRecord]:
        # Caller holds the lock.
        if self._active is not None:
            return None
        created_at = self._clock()
        record = AlertRecord(
            id=candidate.alert_id or self._new_id(created_at),
            level=candidate.level,
            headline=candidate.headline.strip() or BREAKING_FALLBACK_HEADLINE,
            created_at=created_at,
        )
        record.status = AlertStatus.ACTIVE
        self._active = record
        triggered: AlertTriggeredPayload = {
            "id": record.id,
            "level": record.level.value,
            "headline": record.headline,
            "timestamp": epoch_millis(record.created_at),
        }
        self._outbox.append((ALERT_TRIGGERED, triggered))
        return record

    def _drain(self) -> None:
        """Publish queued lifecycle events in the order the slot changed.

        Only one thread drains at a time; events queued by other threads (or
        by subscribers re-entering the dispatcher) are picked up by the
        drainer already running.
        """

        with self._lock:
            if self._draining:
                return
            self._draining = True
        try:
            while True:
                with self._lock:
                    if not self._outbox:
                        self._draining = False
                        return
                    event, payload = self._outbox.popleft()
                if event == ALERT_TRIGGERED:
                    logger.info(
                        "Alert %s triggered (%s): %s",
                        payload["id"],
                        payload["level"],
                        payload["headline"],
                    )
                else:
                    logger.info("Alert %s dismissed", payload["id"])
                self._bus.publish(event, payload)
        except BaseException:
            with self._lock:
                self._draining = False
            raise

    def trigger(self, candidate: AlertCandidate) -> bool:
        """Activate ``candidate`` unless an alert already holds the slot."""

        with self._lock:
            record = self._claim_slot(candidate)
        if record is None:
            logger.debug("Alert dropped while another is active: %s", candidate.headline)
            return False
        self._drain()
        return True

    def trigger_page_level(
        self, headline: str, level: AlertLevel = AlertLevel.CRITICAL
    ) -> bool:
        """Trigger at most once per session, guarded by the dedup marker."""

        with self._lock:
            if self._marker.is_set():
                logger.debug("Page-level alert already shown this session.")
                return False
            record = self._claim_slot(AlertCandidate(headline=headline, level=level))
            self._marker.set()
        if record is None:
            return False
        self._drain()
        return True

    def dismiss(self, alert_id: str) -> bool:
        """Dismiss the active alert when ``alert_id`` matches it."""

        with self._lock:
            record = self._active
            if record is None or record.id != alert_id or record.status is not AlertStatus.ACTIVE:
                logger.debug("Ignoring dismiss for stale alert id %s", alert_id)
                return False
            record.status = AlertStatus.DISMISSED

        if self._dismiss_hold_ms and self._timers is not None:
            try:
                self._timers.after(self._dismiss_hold_ms, lambda: self._teardown(record))
                return True
            except RuntimeError:
                logger.debug("Timers unavailable; tearing down alert %s now", record.id)
        self._teardown(record)
        return True

    def _teardown(self, record: AlertRecord) -> None:
        with self._lock:
            if self._active is not record:
                return
            self._active = None
            dismissed: AlertDismissedPayload = {"id": record.id}
            self._outbox.append((ALERT_DISMISSED, dismissed))
        self._drain()

    # Inbound notifications

    def bind(self) -> None:
        """Subscribe to ``notification:send`` on the bus."""

        if self._notification_token is None:
            self._notification_token = self._bus.subscribe(
                NOTIFICATION_SEND, self.handle_notification
            )

    def unbind(self) -> None:
        if self._notification_token is not None:
            self._bus.unsubscribe(self._notification_token)
            self._notification_token = None

    def handle_notification(self, payload: Mapping[str, Any]) -> bool:
        title = str(payload.get("title") or "").strip()
        message = str(payload.get("message") or "").strip()
        if not title and not message:
            return False
        kind = str(payload.get("type") or "info").strip().lower()
        level = _NOTIFICATION_LEVELS.get(kind, AlertLevel.INFO)
        return self.trigger(AlertCandidate(headline=title or message, level=level))


__all__ = ["AlertDispatcher"]
