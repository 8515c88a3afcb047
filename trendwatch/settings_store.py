"""Feed configuration loading for TrendWatch.

The configuration is read once at startup from a URL or a JSON file. Any
failure is non-fatal: the documented defaults are used instead.

Updates: v0.1 - 2026-09-14 - Replaced desktop settings persistence with feed config loading.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

import requests

from .config import DEFAULT_FEED_CONFIG, merge_feed_config
from .http_client import fetch_json
from .models import FeedConfig

logger = logging.getLogger(__name__)


def _is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


def _read_payload(location: Union[str, Path]) -> Any:
    if isinstance(location, str) and _is_url(location):
        return fetch_json(location)
    path = Path(location).expanduser()
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_feed_config(location: Optional[Union[str, Path]] = None) -> FeedConfig:
    """Load the feed configuration, falling back to defaults on any failure."""

    if location is None or (isinstance(location, str) and not location.strip()):
        logger.debug("No feed config location configured; using defaults.")
        return DEFAULT_FEED_CONFIG
    try:
        payload = _read_payload(location)
    except (OSError, ValueError, requests.RequestException) as exc:
        logger.warning(
            "Unable to load feed config from %s, using defaults: %s", location, exc
        )
        return DEFAULT_FEED_CONFIG
    if not isinstance(payload, dict):
        logger.warning(
            "Feed config at %s is not a JSON object; using defaults.", location
        )
        return DEFAULT_FEED_CONFIG
    config = merge_feed_config(payload)
    logger.info(
        "Loaded feed config from %s (%s channel(s)).", location, len(config.channels)
    )
    return config


def save_feed_config(config: FeedConfig, path: Union[str, Path]) -> None:
    """Write ``config`` as JSON; used to seed an editable config file."""

    target = Path(path).expanduser()
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as handle:
            json.dump(config.to_payload(), handle, indent=2)
    except OSError as exc:  # pragma: no cover - IO issues
        logger.warning("Unable to save feed config: %s", exc)


__all__ = ["load_feed_config", "save_feed_config"]
