"""Unit tests for trend scoring and trending selection."""

from __future__ import annotations

from datetime import timedelta

import pytest

from trendwatch.models import ContentItem
from trendwatch.scoring import rank, recency_score, score, select_trending


def test_recent_item_scores_recency_and_engagement(make_item, now) -> None:
    """Five-minute-old item: linear decay plus views and double-weighted likes."""
    item = make_item("fresh", minutes_old=5, views=1000, likes=50)
    trend = score(item, now)
    assert trend.item_id == "fresh"
    assert trend.recency_score == pytest.approx(100 - (5 / 60) * 5)
    assert trend.engagement_score == 1100
    assert trend.total == pytest.approx(trend.recency_score + 1100)


def test_twenty_hour_old_item_has_zero_recency(make_item, now) -> None:
    item = make_item("old", minutes_old=20 * 60, views=5000, likes=200)
    trend = score(item, now)
    assert trend.recency_score == 0
    assert trend.total == 5400


def test_older_than_twenty_hours_stays_at_zero(make_item, now) -> None:
    assert recency_score(make_item(minutes_old=48 * 60), now) == 0


def test_future_timestamp_clamps_to_full_recency(make_item, now) -> None:
    item = make_item("future", minutes_old=-90)
    assert recency_score(item, now) == 100


def test_recency_is_monotonically_non_increasing(make_item, now) -> None:
    ages = [0, 1, 30, 59, 60, 300, 599, 600, 1199, 1200, 1201, 2000]
    values = [recency_score(make_item(minutes_old=age), now) for age in ages]
    assert values == sorted(values, reverse=True)
    assert all(0 <= value <= 100 for value in values)


def test_rank_orders_by_total_descending(make_item, now) -> None:
    items = [
        make_item("low", minutes_old=60, views=1),
        make_item("high", minutes_old=60, views=500),
        make_item("mid", minutes_old=60, views=50),
    ]
    assert [item.id for item, _ in rank(items, now)] == ["high", "mid", "low"]


def test_rank_breaks_ties_by_earlier_publish(make_item, now) -> None:
    # 95 + 10 == 90 + 15
    newer = make_item("newer", minutes_old=60, views=10)
    older = make_item("older", minutes_old=120, views=15)
    ranked = rank([newer, older], now)
    assert ranked[0][1].total == ranked[1][1].total
    assert [item.id for item, _ in ranked] == ["older", "newer"]


def test_rank_is_stable_for_identical_score_and_time(make_item, now) -> None:
    first = make_item("b", minutes_old=30, views=7)
    second = make_item("a", minutes_old=30, views=7)
    forward = [item.id for item, _ in rank([first, second], now)]
    backward = [item.id for item, _ in rank([second, first], now)]
    assert forward == backward == ["a", "b"]


def test_select_trending_filters_by_threshold(make_item, now) -> None:
    items = [
        make_item("at-threshold", minutes_old=0, views=0),
        make_item("above", minutes_old=0, views=1),
        make_item("below", minutes_old=600, views=10),
    ]
    selected = select_trending(items, threshold=100, limit=10, now=now)
    assert [item.id for item, _ in selected] == ["above"]
    assert all(trend.total > 100 for _, trend in selected)


def test_select_trending_truncates_to_limit(make_item, now) -> None:
    items = [make_item(f"item-{i}", minutes_old=10, views=200 + i) for i in range(8)]
    selected = select_trending(items, threshold=100, limit=3, now=now)
    assert [item.id for item, _ in selected] == ["item-7", "item-6", "item-5"]
    totals = [trend.total for _, trend in selected]
    assert totals == sorted(totals, reverse=True)


def test_select_trending_with_zero_limit_is_empty(make_item, now) -> None:
    assert select_trending([make_item(views=500)], threshold=0, limit=0, now=now) == []


def test_score_defaults_to_current_time(now) -> None:
    trend = score(ContentItem(id="x", published_at=now - timedelta(days=3)))
    assert trend.recency_score == 0
