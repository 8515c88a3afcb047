"""Tests for session stores and the dedup marker."""

from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from trendwatch import cache
from trendwatch.cache import DedupMarker, InMemorySessionStore, RedisSessionStore, build_session_store
from trendwatch.config import REDIS_SOCKET_TIMEOUT


class FakeRedis:
    """Minimal stand-in exposing the two commands the store uses."""

    def __init__(self, *, fail: bool = False) -> None:
        self.values: Dict[str, bytes] = {}
        self.expiries: List[Tuple[str, int]] = []
        self.fail = fail

    def get(self, key: str):
        if self.fail:
            raise ConnectionError("redis down")
        return self.values.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        if self.fail:
            raise ConnectionError("redis down")
        self.values[key] = value.encode("utf-8")
        self.expiries.append((key, ttl))


def test_in_memory_marker_is_one_shot(session_store: InMemorySessionStore) -> None:
    marker = DedupMarker(session_store, "breaking_alert_shown")
    assert not marker.is_set()
    marker.set()
    marker.set()
    assert marker.is_set()
    assert session_store.get("breaking_alert_shown") == "true"


def test_redis_store_namespaces_keys_and_expires() -> None:
    """Keys are scoped by session id and written with the session TTL."""
    client = FakeRedis()
    store = RedisSessionStore(client, "abc", prefix="tw:session", ttl_seconds=120)
    DedupMarker(store, "breaking_alert_shown").set()

    assert client.expiries == [("tw:session:abc:breaking_alert_shown", 120)]
    assert store.get("breaking_alert_shown") == "true"


def test_redis_sessions_are_isolated() -> None:
    client = FakeRedis()
    first = DedupMarker(RedisSessionStore(client, "one"), "m")
    second = DedupMarker(RedisSessionStore(client, "two"), "m")
    first.set()
    assert first.is_set()
    assert not second.is_set()


def test_redis_failures_degrade_to_unset(caplog: pytest.LogCaptureFixture) -> None:
    """Store errors are logged; the marker reads as unset."""
    marker = DedupMarker(RedisSessionStore(FakeRedis(fail=True), "s"), "m")
    marker.set()
    assert not marker.is_set()
    assert "Session store" in caplog.text


def test_redis_store_generates_session_id() -> None:
    store = RedisSessionStore(FakeRedis())
    assert len(store.session_id) == 32


def test_build_session_store_without_redis(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cache, "get_redis_client", lambda: None)
    assert isinstance(build_session_store(), InMemorySessionStore)


def test_build_session_store_with_redis(monkeypatch: pytest.MonkeyPatch) -> None:
    client = FakeRedis()
    monkeypatch.setattr(cache, "get_redis_client", lambda: client)
    store = build_session_store("fixed")
    assert isinstance(store, RedisSessionStore)
    assert store.session_id == "fixed"


def test_get_redis_client_without_url() -> None:
    assert cache.get_redis_client(None) is None


def test_redis_client_uses_bounded_socket_timeouts(monkeypatch: pytest.MonkeyPatch) -> None:
    """The client is built with socket timeouts so a stalled server cannot block callers."""
    captured = {}

    def fake_from_url(url, **kwargs):
        captured.update(kwargs, url=url)
        return FakeRedis()

    monkeypatch.setattr(cache, "_redis_client", None)
    monkeypatch.setattr(cache.redis, "from_url", fake_from_url)
    client = cache.get_redis_client("redis://localhost:6379/0")

    assert isinstance(client, FakeRedis)
    assert captured["url"] == "redis://localhost:6379/0"
    assert captured["socket_timeout"] == REDIS_SOCKET_TIMEOUT
    assert captured["socket_connect_timeout"] == REDIS_SOCKET_TIMEOUT
