"""Application entrypoint wiring for TrendWatch.

Every component is constructed once here and handed to its collaborators
explicitly; nothing is looked up through module globals at runtime.

Updates: v0.1 - 2026-09-14 - Added metadata and object graph construction.
Updates: v0.2 - 2026-10-02 - Added command-line options and logging setup.
"""

from __future__ import annotations

import argparse
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from .app.controller import AlertDispatcher, ChannelScheduler, FeedRefreshController
from .app.services.content_service import build_content_source
from .app.timers import ThreadedTimers, Timers
from .cache import DedupMarker, SessionStore, build_session_store
from .config import (
    BREAKING_ALERT_MARKER,
    CONFIG_LOCATION,
    DEBUG_MODE,
    DISMISS_HOLD_MS,
    SCORED_CHANNELS,
    SESSION_ID,
    content_url_for,
)
from .events import EventBus
from .http_client import close_all_sessions
from .models import AppMetadata, FeedConfig, utc_now
from .settings_store import load_feed_config, save_feed_config

logger = logging.getLogger(__name__)

APP_VERSION = "0.2"
APP_METADATA = AppMetadata(
    name="TrendWatch",
    version=f"v{APP_VERSION}",
    description=(
        "Trend scoring, breaking-news detection and single-slot alert dispatch "
        "driven by independently scheduled content channels."
    ),
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def configure_logging(debug: bool = False) -> logging.Handler:
    """Attach a console handler to the root logger."""

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    root_logger.addHandler(console_handler)
    return console_handler


@dataclass
class TrendWatchApp:
    config: FeedConfig
    bus: EventBus
    dispatcher: AlertDispatcher
    scheduler: ChannelScheduler
    feeds: Dict[str, FeedRefreshController]
    timers: Timers

    def start(self) -> None:
        self.dispatcher.bind()
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()
        self.dispatcher.unbind()
        shutdown = getattr(self.timers, "shutdown", None)
        if callable(shutdown):
            shutdown()


def build_application(
    config: FeedConfig,
    *,
    timers: Optional[Timers] = None,
    session_store: Optional[SessionStore] = None,
    bus: Optional[EventBus] = None,
    clock: Callable[[], datetime] = utc_now,
    content_url: Callable[[str], Optional[str]] = content_url_for,
) -> TrendWatchApp:
    """Construct the object graph for ``config`` without starting it."""

    bus = bus or EventBus()
    timers = timers or ThreadedTimers(max_workers=len(config.channels) + 1)
    store = session_store or build_session_store(SESSION_ID)
    dispatcher = AlertDispatcher(
        bus,
        DedupMarker(store, BREAKING_ALERT_MARKER),
        timers=timers,
        dismiss_hold_ms=DISMISS_HOLD_MS,
        clock=clock,
    )
    feeds: Dict[str, FeedRefreshController] = {}
    for channel in config.channels:
        feeds[channel] = FeedRefreshController(
            channel,
            build_content_source(channel, content_url(channel), clock=clock),
            bus,
            dispatcher,
            config,
            analyze=channel in SCORED_CHANNELS,
            clock=clock,
        )
    scheduler = ChannelScheduler.from_config(config, feeds, bus, timers=timers, clock=clock)
    return TrendWatchApp(
        config=config,
        bus=bus,
        dispatcher=dispatcher,
        scheduler=scheduler,
        feeds=feeds,
        timers=timers,
    )


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="trendwatch", description=APP_METADATA.description)
    parser.add_argument(
        "--config",
        default=CONFIG_LOCATION,
        help="Feed config URL or JSON file (defaults to $TRENDWATCH_CONFIG).",
    )
    parser.add_argument("--debug", action="store_true", default=DEBUG_MODE)
    parser.add_argument(
        "--write-default-config",
        metavar="PATH",
        help="Write the default feed config to PATH and exit.",
    )
    parser.add_argument("--version", action="version", version=APP_METADATA.version)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run TrendWatch until interrupted."""

    args = _parse_args(argv)
    configure_logging(args.debug)
    logger.debug("Bootstrapping %s %s", APP_METADATA.name, APP_METADATA.version)

    if args.write_default_config:
        save_feed_config(load_feed_config(None), args.write_default_config)
        return 0

    config = load_feed_config(args.config)
    app = build_application(config)
    channels: List[str] = app.scheduler.channels
    logger.info("%s started with channels: %s", APP_METADATA.name, ", ".join(channels))
    app.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down.")
    finally:
        app.stop()
        close_all_sessions()
    return 0


__all__ = [
    "APP_METADATA",
    "APP_VERSION",
    "TrendWatchApp",
    "build_application",
    "configure_logging",
    "main",
]
