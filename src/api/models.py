# src/api/models.py — v1
"""Response payloads of the pipeline backend endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EmailLookupResult(_Payload):
    """POST /api/enrich/email response."""

    email: str | None = None
    emails: list[str] = Field(default_factory=list)
    status: Literal["found", "not_found", "error"] = "not_found"
    provider: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None


class OutreachResult(_Payload):
    """POST /api/ai/outreach response."""

    success: bool = False
    message: str | None = None
    subject: str | None = None
    affiliate_id: int | None = None
    contact_email: str | None = None
    error: str | None = None
