"""Service providers consumed by the TrendWatch controllers."""

from .content_service import (
    ContentSource,
    FallbackContentSource,
    LiveContentSource,
    StaticContentSource,
    build_content_source,
)

__all__ = [
    "ContentSource",
    "FallbackContentSource",
    "LiveContentSource",
    "StaticContentSource",
    "build_content_source",
]
