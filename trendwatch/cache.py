"""Session-scoped key-value storage and the dedup marker built on it.

The alert dispatcher never touches ambient storage directly; it receives a
``SessionStore`` at construction. ``RedisSessionStore`` is used when
``REDIS_URL`` is configured, ``InMemorySessionStore`` otherwise.

Updates: v0.1 - 2026-09-14 - Moved the Redis client helper over from the headline cache.
Updates: v0.2 - 2026-10-02 - Added session namespacing and the dedup marker wrapper.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any, Dict, Optional, Protocol

import redis

from .config import REDIS_SOCKET_TIMEOUT, REDIS_URL, SESSION_KEY_PREFIX, SESSION_TTL_SECONDS

logger = logging.getLogger(__name__)

_redis_client: Optional[Any] = None
_redis_lock = threading.Lock()

MARKER_VALUE = "true"


def get_redis_client(url: Optional[str] = REDIS_URL) -> Optional[Any]:
    """Return a cached Redis client if a URL is configured."""

    global _redis_client
    if not url:
        return None
    if _redis_client is not None:
        return _redis_client
    with _redis_lock:
        if _redis_client is not None:
            return _redis_client
        try:
            # Marker reads run under the dispatcher lock; socket waits stay bounded.
            _redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_timeout=REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
            )
        except Exception as exc:  # pragma: no cover - redis connection failure
            logger.warning("Unable to connect to Redis session store: %s", exc)
            _redis_client = None
    return _redis_client


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemorySessionStore:
    """Process-local store; one instance is one session."""

    def __init__(self) -> None:
        self._values: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value


class RedisSessionStore:
    """Redis-backed store namespaced by session id and expired with the session."""

    def __init__(
        self,
        client: Any,
        session_id: Optional[str] = None,
        *,
        prefix: str = SESSION_KEY_PREFIX,
        ttl_seconds: int = SESSION_TTL_SECONDS,
    ) -> None:
        self._client = client
        self.session_id = session_id or uuid.uuid4().hex
        self._prefix = prefix.strip(":") or "trendwatch:session"
        self._ttl_seconds = max(1, int(ttl_seconds))

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{self.session_id}:{key}"

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._client.get(self._key(key))
        except Exception as exc:
            logger.warning("Session store read failed for '%s': %s", key, exc)
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str) -> None:
        # Last write wins; a failed write leaves the marker unset.
        try:
            self._client.setex(self._key(key), self._ttl_seconds, value)
        except Exception as exc:
            logger.warning("Session store write failed for '%s': %s", key, exc)


def build_session_store(session_id: Optional[str] = None) -> SessionStore:
    client = get_redis_client()
    if client is None:
        logger.info("REDIS_URL not set; dedup markers are process-local.")
        return InMemorySessionStore()
    return RedisSessionStore(client, session_id)


class DedupMarker:
    """One-shot per-session flag; once set it is never cleared."""

    def __init__(self, store: SessionStore, marker_id: str) -> None:
        self._store = store
        self.marker_id = marker_id

    def is_set(self) -> bool:
        return self._store.get(self.marker_id) == MARKER_VALUE

    def set(self) -> None:
        self._store.set(self.marker_id, MARKER_VALUE)


__all__ = [
    "DedupMarker",
    "InMemorySessionStore",
    "MARKER_VALUE",
    "RedisSessionStore",
    "SessionStore",
    "build_session_store",
    "get_redis_client",
]
