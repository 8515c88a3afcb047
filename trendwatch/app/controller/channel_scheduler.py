"""Channel scheduler: independent polling lanes for TrendWatch.

Updates:
- v0.1 - 2026-09-14 - Unified per-widget refresh timers under one scheduler.
- v0.2 - 2026-10-02 - Added manual ``run_now`` and stale-tick discarding after stop.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from ...events import SYNC_COMPLETE, EventBus, SyncCompletePayload
from ...models import ChannelDefinition, ChannelHandler, ChannelState, FeedConfig, utc_now
from ...utils import epoch_millis
from ..timers import Timers

logger = logging.getLogger(__name__)


class ChannelScheduler:
    """Runs each channel's handler on its own timer.

    The next tick of a channel is registered only after its handler returns,
    so ticks never overlap within a channel. Channels share nothing but the
    timer pool, and a failing handler is logged and retried on the next tick.
    """

    def __init__(
        self,
        definitions: Iterable[ChannelDefinition],
        bus: EventBus,
        *,
        timers: Timers,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._bus = bus
        self._timers = timers
        self._clock = clock
        self._channels: Dict[str, ChannelState] = {}
        self._tick_locks: Dict[str, threading.Lock] = {}
        for definition in definitions:
            if definition.name in self._channels:
                raise ValueError(f"Duplicate channel '{definition.name}'.")
            if definition.interval_ms <= 0:
                raise ValueError(f"Channel '{definition.name}' needs a positive interval.")
            self._channels[definition.name] = ChannelState(
                name=definition.name,
                interval_ms=int(definition.interval_ms),
                handler=definition.handler,
            )
            self._tick_locks[definition.name] = threading.Lock()
        self._lock = threading.Lock()
        self._handles: Dict[str, object] = {}
        self._running = False
        self._generation = 0

    @classmethod
    def from_config(
        cls,
        config: FeedConfig,
        handlers: Mapping[str, ChannelHandler],
        bus: EventBus,
        *,
        timers: Timers,
        clock: Callable[[], datetime] = utc_now,
    ) -> "ChannelScheduler":
        definitions: List[ChannelDefinition] = []
        for name in config.channels:
            handler = handlers.get(name)
            if handler is None:
                logger.warning("No handler registered for channel '%s'; skipping.", name)
                continue
            definitions.append(ChannelDefinition(name, config.interval_for(name), handler))
        return cls(definitions, bus, timers=timers, clock=clock)

    # Introspection

    @property
    def channels(self) -> List[str]:
        return list(self._channels)

    def channel(self, name: str) -> ChannelState:
        return self._channels[name]

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._running

    # Lifecycle

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._generation += 1
            generation = self._generation
        for state in self._channels.values():
            logger.info(
                "Starting sync for channel '%s' every %s ms", state.name, state.interval_ms
            )
            self._schedule(state, generation)

    def stop(self) -> None:
        """Cancel pending ticks; in-flight handlers finish and are discarded."""

        with self._lock:
            if not self._running:
                return
            self._running = False
            self._generation += 1
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            try:
                self._timers.after_cancel(handle)
            except Exception:  # pragma: no cover - timer backend teardown
                logger.debug("Timer cancel failed during stop", exc_info=True)
        logger.info("Channel scheduler stopped.")

    def _schedule(self, state: ChannelState, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self._handles[state.name] = self._timers.after(
                state.interval_ms, lambda: self._on_timer(state.name, generation)
            )

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self._running and generation == self._generation

    # Ticks

    def _on_timer(self, name: str, generation: int) -> None:
        with self._lock:
            if not self._running or generation != self._generation:
                return
            self._handles.pop(name, None)
        state = self._channels[name]
        with self._tick_locks[name]:
            self._run_tick(state, generation)
        self._schedule(state, generation)

    def _run_tick(self, state: ChannelState, generation: Optional[int]) -> bool:
        # Caller holds the channel's tick lock.
        state.tick_count += 1
        try:
            state.handler()
        except Exception:
            state.failure_count += 1
            logger.exception("Handler for channel '%s' failed", state.name)
            return False

        if generation is not None and not self._is_current(generation):
            logger.debug("Discarding result for channel '%s' after stop", state.name)
            return False

        timestamp = state.mark_synced(self._clock())
        payload: SyncCompletePayload = {
            "channel": state.name,
            "timestamp": epoch_millis(timestamp),
        }
        self._bus.publish(SYNC_COMPLETE, payload)
        logger.debug("Channel '%s' synced (tick %s)", state.name, state.tick_count)
        return True

    def run_now(self, name: str) -> bool:
        """Run one tick of ``name`` on the calling thread.

        Returns ``False`` when the handler failed or a tick for the channel is
        already in flight. The channel's timer cadence is left unchanged.
        """

        state = self._channels[name]
        lock = self._tick_locks[name]
        if not lock.acquire(blocking=False):
            logger.debug("Channel '%s' tick already in flight", name)
            return False
        try:
            return self._run_tick(state, None)
        finally:
            lock.release()


__all__ = ["ChannelScheduler"]
