# tests/unit/selection/test_unit_filters.py — v1
"""Tests for selection/filters.py — the affiliate visible predicate."""

from __future__ import annotations

import datetime as dt

import pytest

from bulkops.core.models import DateRange, DiscoveryMethod, FilterState, NumberRange
from bulkops.selection.filters import (
    apply_filters,
    audience_size,
    content_count,
    matches,
    parse_subscriber_count,
    source_counts,
)
from tests.conftest import make_item


class TestParseSubscriberCount:
    @pytest.mark.parametrize("text,expected", [
        ("1.2M", 1_200_000),
        ("15K", 15_000),
        ("15k", 15_000),
        ("3,400", 3_400),
        ("3,400 subscribers", 3_400),
        ("1.5B", 1_500_000_000),
        ("812", 812),
    ])
    def test_valid(self, text, expected):
        assert parse_subscriber_count(text) == expected

    @pytest.mark.parametrize("text", [None, "", "n/a", "lots"])
    def test_garbage(self, text):
        assert parse_subscriber_count(text) is None


class TestAudienceAndContent:
    def test_channel_subscribers_first(self):
        item = make_item("a", channel_subscribers="2K", instagram_followers=50)
        assert audience_size(item) == 2000

    def test_falls_back_to_followers(self):
        assert audience_size(make_item("a", instagram_followers=50)) == 50
        assert audience_size(make_item("a", tiktok_followers=70)) == 70
        assert audience_size(make_item("a")) == 0

    def test_content_count(self):
        assert content_count(make_item("a", instagram_posts_count=12)) == 12
        assert content_count(make_item("a", tiktok_videos_count=9)) == 9
        assert content_count(make_item("a")) == 0


class TestMatches:
    def test_default_state_matches_all(self, sample_items):
        assert apply_filters(sample_items, FilterState()) == sample_items

    def test_source_tab(self, sample_items):
        visible = apply_filters(sample_items, FilterState(source="YouTube"))
        assert [i.link for i in visible] == ["d"]

    def test_search_is_case_insensitive(self):
        item = make_item("a", title="Yoga With Adriene", domain="yoga.com", keyword="stretch")
        assert matches(item, FilterState(search="ADRIENE"))
        assert matches(item, FilterState(search="yoga.com"))
        assert matches(item, FilterState(search="stret"))
        assert not matches(item, FilterState(search="pilates"))

    def test_competitors(self):
        rival = make_item("a", discovery_method=DiscoveryMethod(type="competitor", value="rival.com"))
        topic = make_item("b", discovery_method=DiscoveryMethod(type="topic", value="rival.com"))
        state = FilterState(competitors=("rival.com",))
        assert matches(rival, state)
        assert not matches(topic, state)
        assert not matches(make_item("c"), state)

    def test_topics(self):
        by_topic = make_item("a", discovery_method=DiscoveryMethod(type="topic", value="yoga"))
        by_keyword = make_item("b", keyword="yoga")
        other = make_item("c", keyword="golf")
        state = FilterState(topics=("yoga",))
        assert matches(by_topic, state)
        assert matches(by_keyword, state)
        assert not matches(other, state)

    def test_subscriber_range(self):
        state = FilterState(subscribers=NumberRange(min=10_000, max=2_000_000))
        assert matches(make_item("a", channel_subscribers="1.2M"), state)
        assert not matches(make_item("b", channel_subscribers="5K"), state)
        assert not matches(make_item("c", instagram_followers=3_000_000), state)

    def test_unknown_audience_excluded_by_range(self):
        state = FilterState(subscribers=NumberRange(min=0))
        assert not matches(make_item("a"), state)

    def test_date_range(self):
        state = FilterState(date_published=DateRange(start=dt.date(2026, 1, 1)))
        assert matches(make_item("a", date="2026-03-04T10:00:00Z"), state)
        assert not matches(make_item("b", date="2025-12-31"), state)

    def test_missing_or_bad_date_excluded(self):
        state = FilterState(last_posted=DateRange(end=dt.date(2030, 1, 1)))
        assert not matches(make_item("a"), state)
        assert not matches(make_item("b", date="last week"), state)

    def test_content_count_range(self):
        state = FilterState(content_count=NumberRange(max=100))
        assert matches(make_item("a", tiktok_videos_count=40), state)
        assert not matches(make_item("b", tiktok_videos_count=400), state)
        assert not matches(make_item("c"), state)


class TestSourceCounts:
    def test_counts(self, sample_items):
        counts = source_counts(sample_items)
        assert counts["All"] == 4
        assert counts["Web"] == 3
        assert counts["YouTube"] == 1
        assert counts["TikTok"] == 0
