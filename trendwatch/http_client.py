"""Shared HTTP session management for TrendWatch network requests.

Updates: v0.1 - 2026-09-14 - Kept pooled session helpers; added a JSON fetch helper.
"""

from __future__ import annotations

import atexit
import threading
from typing import Any, Optional, Sequence, Set

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from .config import HTTP_TIMEOUT, USER_AGENT

_HTTP_THREAD_LOCAL = threading.local()
_HTTP_SESSION_LOCK = threading.Lock()
_HTTP_SESSIONS: Set[Session] = set()
_RETRY_STATUSES: Set[int] = {408, 429, 500, 502, 503, 504}


def _build_retry() -> Retry:
    return Retry(  # pragma: no cover - network configuration
        total=2,
        backoff_factor=0.3,
        status_forcelist=list(_RETRY_STATUSES),
        allowed_methods=["HEAD", "GET", "OPTIONS"],
        raise_on_status=False,
    )


def get_http_session() -> Session:
    """Return a thread-local shared requests session configured with retries.

    Channel ticks run on timer pool workers; each worker keeps its own
    session, so sessions are never shared across concurrent requests.
    """

    session = getattr(_HTTP_THREAD_LOCAL, "session", None)
    if session is not None:
        return session
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=_build_retry())
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    with _HTTP_SESSION_LOCK:
        _HTTP_SESSIONS.add(session)
    _HTTP_THREAD_LOCAL.session = session
    return session


def close_all_sessions() -> None:
    """Close pooled HTTP sessions at shutdown."""

    with _HTTP_SESSION_LOCK:
        sessions: Sequence[Session] = tuple(_HTTP_SESSIONS)
        _HTTP_SESSIONS.clear()
    for session in sessions:
        try:
            session.close()
        except Exception:  # pragma: no cover - close errors at exit
            continue
    if hasattr(_HTTP_THREAD_LOCAL, "session"):
        del _HTTP_THREAD_LOCAL.session


def fetch_json(
    url: str, *, timeout: float = HTTP_TIMEOUT, session: Optional[Session] = None
) -> Any:
    """GET ``url`` and decode the JSON body.

    Raises ``requests.RequestException`` for transport and HTTP status errors
    and ``ValueError`` for undecodable bodies; callers decide the fallback.
    """

    client = session or get_http_session()
    response = client.get(
        url,
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        timeout=timeout,
    )
    response.raise_for_status()
    return response.json()


atexit.register(close_all_sessions)


__all__ = ["close_all_sessions", "fetch_json", "get_http_session"]
