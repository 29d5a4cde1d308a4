# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

The saved pipeline is a collection of AffiliateItem rows keyed by their
link. FilterState captures everything the pipeline view filters on.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Opaque, value-compared key of a selectable row (a link or a numeric row id).
ItemId = Union[str, int]

Source = Literal["Web", "YouTube", "Instagram", "TikTok"]
EmailStatus = Literal["not_searched", "searching", "found", "not_found", "error"]


class _CamelModel(BaseModel):
    """Accepts the backend's camelCase payloads and snake_case kwargs alike."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# === AFFILIATE ITEMS ===


class DiscoveryMethod(_CamelModel):
    """How an affiliate was discovered (competitor, keyword, topic or tag)."""

    type: Literal["competitor", "keyword", "topic", "tagged"]
    value: str = ""


class AffiliateItem(_CamelModel):
    """A saved affiliate row in the outreach pipeline."""

    # --- Identity ---
    id: int | None = None
    link: str

    # --- Display ---
    title: str = ""
    domain: str = ""
    source: Source = "Web"
    keyword: str | None = None
    date: str | None = None

    # --- Contact ---
    email: str | None = None
    email_status: EmailStatus = "not_searched"

    # --- Discovery ---
    discovery_method: DiscoveryMethod | None = None

    # --- Audience ---
    channel_subscribers: str | None = None
    instagram_followers: int | None = None
    tiktok_followers: int | None = None
    instagram_posts_count: int | None = None
    tiktok_videos_count: int | None = None

    @model_validator(mode="before")
    @classmethod
    def fold_discovery_columns(cls, data: object) -> object:
        """Accept flat discovery_method_type/_value columns as stored rows have them."""
        if not isinstance(data, dict) or data.get("discovery_method") or data.get("discoveryMethod"):
            return data
        dm_type = data.get("discovery_method_type") or data.get("discoveryMethodType")
        if dm_type:
            data = dict(data)
            data["discovery_method"] = {
                "type": dm_type,
                "value": data.get("discovery_method_value") or data.get("discoveryMethodValue") or "",
            }
        return data

    @property
    def key(self) -> str:
        """Selection key of the item; links are unique within a pipeline."""
        return self.link

    @property
    def has_email(self) -> bool:
        """True when an email lookup would be redundant for this item."""
        return bool(self.email) or self.email_status in ("found", "searching")


# === FILTERS ===


class NumberRange(BaseModel):
    """Inclusive numeric range; a missing bound is unbounded."""

    model_config = ConfigDict(frozen=True)

    min: int | None = None
    max: int | None = None


class DateRange(BaseModel):
    """Inclusive date range; a missing bound is unbounded."""

    model_config = ConfigDict(frozen=True)

    start: dt.date | None = None
    end: dt.date | None = None


class FilterState(BaseModel):
    """Filter and search state of the pipeline view.

    Frozen: a filter change always produces a new FilterState, so the
    view projector can memoize on identity.
    """

    model_config = ConfigDict(frozen=True)

    source: Literal["All", "Web", "YouTube", "Instagram", "TikTok"] = "All"
    search: str = ""
    competitors: tuple[str, ...] = Field(default_factory=tuple)
    topics: tuple[str, ...] = Field(default_factory=tuple)
    subscribers: NumberRange | None = None
    date_published: DateRange | None = None
    last_posted: DateRange | None = None
    content_count: NumberRange | None = None

    @property
    def is_default(self) -> bool:
        """True when no filter narrows the view."""
        return self == FilterState()


DEFAULT_FILTER_STATE = FilterState()
