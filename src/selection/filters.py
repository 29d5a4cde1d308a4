# src/selection/filters.py — v1
"""Visible predicate for the saved-affiliates pipeline view.

An item is visible when it passes every active filter: source tab, free-text
search, competitor and topic lists, and the audience/date/content ranges.
"""

from __future__ import annotations

import datetime as dt
import re
from collections.abc import Iterable

from bulkops.core.models import AffiliateItem, DateRange, FilterState, NumberRange

_COUNT_RE = re.compile(r"^\s*([\d.,]+)\s*([KMB])?", re.IGNORECASE)
_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}


def parse_subscriber_count(text: str | None) -> int | None:
    """Parse display counts like '1.2M', '15K' or '3,400 subscribers'.

    Returns:
        The count as an int, or None when ``text`` holds no number.
    """
    if not text:
        return None
    match = _COUNT_RE.match(text)
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    try:
        value = float(digits)
    except ValueError:
        return None
    suffix = (match.group(2) or "").upper()
    return int(round(value * _MULTIPLIERS.get(suffix, 1)))


def audience_size(item: AffiliateItem) -> int:
    """Subscriber/follower count used by the subscribers filter (0 = unknown)."""
    if item.channel_subscribers:
        return parse_subscriber_count(item.channel_subscribers) or 0
    if item.instagram_followers:
        return item.instagram_followers
    if item.tiktok_followers:
        return item.tiktok_followers
    return 0


def content_count(item: AffiliateItem) -> int:
    """Post/video count used by the content-count filter (0 = unknown)."""
    if item.instagram_posts_count:
        return item.instagram_posts_count
    if item.tiktok_videos_count:
        return item.tiktok_videos_count
    return 0


def _parse_item_date(raw: str | None) -> dt.date | None:
    if not raw:
        return None
    try:
        return dt.date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def _in_number_range(value: int, rng: NumberRange) -> bool:
    if value == 0:
        return False
    if rng.min is not None and value < rng.min:
        return False
    if rng.max is not None and value > rng.max:
        return False
    return True


def _in_date_range(raw: str | None, rng: DateRange) -> bool:
    value = _parse_item_date(raw)
    if value is None:
        return False
    if rng.start is not None and value < rng.start:
        return False
    if rng.end is not None and value > rng.end:
        return False
    return True


def _matches_search(item: AffiliateItem, query: str) -> bool:
    q = query.lower()
    return (
        q in item.title.lower()
        or q in item.domain.lower()
        or (item.keyword is not None and q in item.keyword.lower())
    )


def _matches_topics(item: AffiliateItem, topics: tuple[str, ...]) -> bool:
    dm = item.discovery_method
    if dm is not None and dm.type in ("topic", "keyword") and dm.value in topics:
        return True
    return bool(item.keyword) and item.keyword in topics


def matches(item: AffiliateItem, state: FilterState) -> bool:
    """Return True if ``item`` is visible under ``state``."""
    if state.source != "All" and item.source != state.source:
        return False

    if state.search and not _matches_search(item, state.search):
        return False

    if state.competitors:
        dm = item.discovery_method
        if dm is None or dm.type != "competitor" or dm.value not in state.competitors:
            return False

    if state.topics and not _matches_topics(item, state.topics):
        return False

    if state.subscribers and not _in_number_range(audience_size(item), state.subscribers):
        return False

    if state.date_published and not _in_date_range(item.date, state.date_published):
        return False

    if state.last_posted and not _in_date_range(item.date, state.last_posted):
        return False

    if state.content_count and not _in_number_range(content_count(item), state.content_count):
        return False

    return True


def apply_filters(
    items: Iterable[AffiliateItem], state: FilterState,
) -> list[AffiliateItem]:
    """Filter ``items`` under ``state``, preserving order."""
    return [item for item in items if matches(item, state)]


def source_counts(items: Iterable[AffiliateItem]) -> dict[str, int]:
    """Per-source tab counts, including the 'All' total."""
    counts = {"All": 0, "Web": 0, "YouTube": 0, "Instagram": 0, "TikTok": 0}
    for item in items:
        counts["All"] += 1
        counts[item.source] = counts.get(item.source, 0) + 1
    return counts
