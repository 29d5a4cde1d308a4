# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample affiliate items, zero-delay settings, and an in-memory
backend served through httpx.MockTransport. No network I/O.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio

from bulkops.api.client import PipelineApiClient
from bulkops.batch.models import Outcome
from bulkops.config.settings import Settings
from bulkops.core.models import AffiliateItem, DiscoveryMethod


# === FIXTURES: Logging ===


@pytest.fixture(autouse=True)
def _reset_bulkops_logger():
    """Drop handlers installed by setup_logging so they never outlive a test."""
    yield
    root = logging.getLogger("bulkops")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


# === FIXTURES: Sample data ===


def make_item(link: str, **kwargs) -> AffiliateItem:
    """AffiliateItem with sensible defaults; ``link`` doubles as the key."""
    defaults = {
        "title": f"Title {link}",
        "domain": f"{link}.example.com",
        "source": "Web",
    }
    defaults.update(kwargs)
    return AffiliateItem(link=link, **defaults)


@pytest.fixture
def item_factory() -> Callable[..., AffiliateItem]:
    return make_item


@pytest.fixture
def sample_items() -> list[AffiliateItem]:
    """Four items; 'd' is the only YouTube one."""
    return [
        make_item("a", id=1, keyword="fitness"),
        make_item("b", id=2, keyword="yoga"),
        make_item("c", id=3, email="c@example.com", email_status="found"),
        make_item(
            "d", id=4, source="YouTube", channel_subscribers="1.2M",
            discovery_method=DiscoveryMethod(type="competitor", value="rival.com"),
        ),
    ]


@pytest.fixture
def web_items(sample_items) -> list[AffiliateItem]:
    return [i for i in sample_items if i.source == "Web"]


# === FIXTURES: Settings ===


@pytest.fixture
def settings() -> Settings:
    """Settings with no pacing and no display timers, independent of .env."""
    return Settings(
        _env_file=None,
        user_id=7,
        inter_item_delay_ms=0,
        result_display_ms=0,
        notification_ttl_ms=0,
    )


# === FIXTURES: Operations ===


def recording_operation(
    fail: set | None = None, raise_on: set | None = None,
) -> tuple[Callable, list]:
    """Async operation recording call order; fails or raises on chosen ids."""
    calls: list = []
    fail = fail or set()
    raise_on = raise_on or set()

    async def operation(item_id):
        calls.append(item_id)
        if item_id in raise_on:
            raise RuntimeError(f"boom {item_id}")
        if item_id in fail:
            return Outcome.failure("rejected")
        return Outcome.success()

    return operation, calls


@pytest.fixture
def op_factory():
    return recording_operation


# === FIXTURES: Backend ===


class FakeBackend:
    """In-memory pipeline backend speaking the REST routes of PipelineApiClient."""

    def __init__(self, items: list[AffiliateItem]) -> None:
        self.rows = {item.link: item.model_dump(by_alias=True) for item in items}
        self.requests: list[httpx.Request] = []
        self.fail_delete: set[str] = set()
        self.emails: dict[str, str] = {}
        self.no_credits = False
        self.list_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/affiliates/saved" and request.method == "GET":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"error": "Failed to fetch"})
            return httpx.Response(200, json={"affiliates": list(self.rows.values())})
        if path == "/api/affiliates/saved" and request.method == "DELETE":
            link = request.url.params["link"]
            if link in self.fail_delete:
                return httpx.Response(500, json={"error": "Failed to remove affiliate"})
            self.rows.pop(link, None)
            return httpx.Response(200, json={"success": True})
        if path == "/api/enrich/email":
            if self.no_credits:
                return httpx.Response(402, json={"error": "Insufficient credits"})
            body = json.loads(request.content)
            email = self.emails.get(body["domain"])
            if email:
                return httpx.Response(200, json={"email": email, "status": "found"})
            return httpx.Response(200, json={"status": "not_found"})
        if path == "/api/ai/outreach":
            body = json.loads(request.content)
            title = body["affiliate"].get("title", "")
            return httpx.Response(
                200, json={"success": True, "message": f"Hi {title}", "subject": "Hello"},
            )
        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def backend(sample_items) -> FakeBackend:
    return FakeBackend(sample_items)


@pytest_asyncio.fixture
async def api_client(backend):
    client = PipelineApiClient(
        "http://test.local", token="tok", transport=httpx.MockTransport(backend.handler),
    )
    yield client
    await client.aclose()
