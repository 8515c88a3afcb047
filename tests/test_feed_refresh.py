"""Tests for the per-channel refresh handler."""

from __future__ import annotations

from datetime import timedelta

import pytest

from trendwatch.app.controller import AlertDispatcher, FeedRefreshController
from trendwatch.config import DEFAULT_FEED_CONFIG, merge_feed_config
from trendwatch.models import AlertCandidate, AlertLevel, ContentFetchResult
from trendwatch.utils import epoch_millis


class StubSource:
    def __init__(self, items, *, from_fallback: bool = False) -> None:
        self.items = list(items)
        self.from_fallback = from_fallback
        self.calls = 0

    def fetch(self) -> ContentFetchResult:
        self.calls += 1
        return ContentFetchResult(
            items=list(self.items),
            from_fallback=self.from_fallback,
            error="offline" if self.from_fallback else None,
        )


@pytest.fixture
def dispatcher(bus, marker) -> AlertDispatcher:
    return AlertDispatcher(bus, marker)


def _controller(source, bus, dispatcher, now, *, config=DEFAULT_FEED_CONFIG, analyze=True):
    return FeedRefreshController(
        "news", source, bus, dispatcher, config, analyze=analyze, clock=lambda: now
    )


def test_refresh_ranks_trending_items(make_item, bus, dispatcher, now) -> None:
    """Only items above the threshold are kept, highest total first."""
    source = StubSource(
        [
            make_item("quiet", minutes_old=600, views=5),
            make_item("hot", minutes_old=120, views=900, likes=40),
            make_item("warm", minutes_old=60, views=150),
        ]
    )
    controller = _controller(source, bus, dispatcher, now)
    controller()

    assert [item.id for item, _ in controller.trending] == ["hot", "warm"]
    assert len(controller.items) == 3
    assert not controller.last_from_fallback


def test_trending_respects_configured_limit(make_item, bus, dispatcher, now) -> None:
    config = merge_feed_config({"trendingLimit": 1})
    source = StubSource([make_item(f"n{i}", minutes_old=60, views=200 + i) for i in range(4)])
    controller = _controller(source, bus, dispatcher, now, config=config)
    controller.refresh()
    assert [item.id for item, _ in controller.trending] == ["n3"]


def test_recent_item_is_announced_once(make_item, bus, dispatcher, recorder, now) -> None:
    """A breaking item produces one event and one alert across refreshes."""
    source = StubSource([make_item("flash", minutes_old=10, title="Goal in extra time")])
    controller = _controller(source, bus, dispatcher, now)

    controller.refresh()
    controller.refresh()

    assert recorder.named("breaking:detected") == [
        {"itemId": "flash", "headline": "Goal in extra time", "detectedAt": epoch_millis(now)}
    ]
    triggered = recorder.named("alert:triggered")
    assert len(triggered) == 1
    assert triggered[0]["level"] == "critical"
    assert triggered[0]["headline"] == "Goal in extra time"


def test_stale_item_is_not_announced(make_item, bus, dispatcher, recorder, now) -> None:
    source = StubSource([make_item("old", minutes_old=20, views=5000)])
    _controller(source, bus, dispatcher, now).refresh()
    assert recorder.named("breaking:detected") == []
    assert dispatcher.active_alert is None


def test_breaking_while_alert_active_is_dropped(make_item, bus, dispatcher, recorder, now) -> None:
    """Detection is still published, but the alert slot stays with the first alert."""
    dispatcher.trigger(AlertCandidate("Existing", AlertLevel.WARNING, "existing"))
    source = StubSource([make_item("flash", minutes_old=3)])
    _controller(source, bus, dispatcher, now).refresh()

    assert len(recorder.named("breaking:detected")) == 1
    assert dispatcher.active_alert.id == "existing"
    assert len(recorder.named("alert:triggered")) == 1


def test_untitled_breaking_item_uses_fallback_headline(make_item, bus, dispatcher, recorder, now) -> None:
    _controller(StubSource([make_item("x", minutes_old=1)]), bus, dispatcher, now).refresh()
    assert recorder.named("breaking:detected")[0]["headline"] == "Breaking News"


def test_tagged_item_triggers_page_level_alert_once(make_item, bus, dispatcher, recorder, marker, now) -> None:
    """Breaking-tagged content raises one alert per session regardless of age."""
    source = StubSource([make_item("tagged", minutes_old=300, tags=["Breaking"], title="Derby called off")])
    controller = _controller(source, bus, dispatcher, now)

    controller.refresh()
    assert marker.is_set()
    active = dispatcher.active_alert
    assert active.headline == "Derby called off"
    dispatcher.dismiss(active.id)

    controller.refresh()
    assert dispatcher.active_alert is None
    assert len(recorder.named("alert:triggered")) == 1
    assert recorder.named("breaking:detected") == []


def test_unscored_channel_only_refreshes_snapshot(make_item, bus, dispatcher, recorder, now) -> None:
    source = StubSource([make_item("m", minutes_old=1, views=900, tags=["breaking"])])
    controller = _controller(source, bus, dispatcher, now, analyze=False)
    controller.refresh()

    assert [item.id for item in controller.items] == ["m"]
    assert controller.trending == []
    assert recorder.events == []


def test_fallback_flag_is_exposed(make_item, bus, dispatcher, now) -> None:
    source = StubSource([make_item("d", minutes_old=400)], from_fallback=True)
    controller = _controller(source, bus, dispatcher, now)
    controller.refresh()
    assert controller.last_from_fallback


def test_source_errors_propagate_to_scheduler(bus, dispatcher, now) -> None:
    class BrokenSource:
        def fetch(self) -> ContentFetchResult:
            raise RuntimeError("parser exploded")

    controller = _controller(BrokenSource(), bus, dispatcher, now)
    with pytest.raises(RuntimeError):
        controller.refresh()


def test_refresh_uses_clock_for_window(make_item, bus, dispatcher, recorder, now) -> None:
    item = make_item("edge", minutes_old=10)
    later = now + timedelta(minutes=10)
    FeedRefreshController(
        "scores", StubSource([item]), bus, dispatcher, DEFAULT_FEED_CONFIG, clock=lambda: later
    ).refresh()
    assert recorder.named("breaking:detected") == []


def test_announced_ids_are_bounded_by_current_feed(make_item, bus, dispatcher, recorder, now) -> None:
    """Ids that have left the feed are forgotten, so memory stays bounded."""
    source = StubSource([])
    controller = _controller(source, bus, dispatcher, now)
    for index in range(500):
        source.items = [make_item(f"flash-{index}", minutes_old=1)]
        controller.refresh()

    assert len(controller._announced) <= 1
    assert len(recorder.named("breaking:detected")) == 500


def test_item_still_in_feed_is_not_reannounced(make_item, bus, dispatcher, recorder, now) -> None:
    flash = make_item("flash", minutes_old=1)
    source = StubSource([flash, make_item("other", minutes_old=30)])
    controller = _controller(source, bus, dispatcher, now)
    controller.refresh()
    source.items = [make_item("other", minutes_old=30), flash]
    controller.refresh()
    assert len(recorder.named("breaking:detected")) == 1
