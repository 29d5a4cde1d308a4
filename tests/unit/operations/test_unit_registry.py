# tests/unit/operations/test_unit_registry.py — v1
"""Tests for operations/registry.py — per-item operations over the REST client."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from bulkops.api.client import ApiError, InsufficientCreditsError
from bulkops.api.models import EmailLookupResult, OutreachResult
from bulkops.operations.registry import (
    BATCH_KINDS,
    DELETE,
    ERR_CREDITS,
    ERR_EMPTY_MESSAGE,
    ERR_NO_ITEM,
    ERR_NOT_FOUND,
    FIND_EMAIL,
    GENERATE,
    build_operations,
    is_credit_error,
    make_delete,
    make_find_email,
    make_generate,
    needs_email_lookup,
)
from tests.conftest import make_item


def _client() -> AsyncMock:
    client = AsyncMock()
    client.delete_saved.return_value = None
    return client


class TestNeedsEmailLookup:
    def test_fresh_item(self):
        assert needs_email_lookup(make_item("a"))

    def test_found_or_searching(self):
        assert not needs_email_lookup(make_item("a", email="x@y.com"))
        assert not needs_email_lookup(make_item("a", email_status="searching"))


class TestDelete:
    @pytest.mark.asyncio
    async def test_success(self):
        client = _client()
        outcome = await make_delete(client, 7)("https://a.com")
        assert outcome.ok
        client.delete_saved.assert_awaited_once_with(7, "https://a.com")

    @pytest.mark.asyncio
    async def test_api_error_propagates_to_executor(self):
        client = _client()
        client.delete_saved.side_effect = ApiError(500, "Failed to remove affiliate")
        with pytest.raises(ApiError):
            await make_delete(client, 7)("a")


class TestFindEmail:
    def setup_method(self):
        self.items = {"a": make_item("a")}
        self.client = _client()
        self.op = make_find_email(self.client, 7, self.items.get)

    @pytest.mark.asyncio
    async def test_found(self):
        self.client.find_email.return_value = EmailLookupResult(email="hi@a.com", status="found")
        outcome = await self.op("a")
        assert outcome.ok
        assert outcome.detail == "hi@a.com"

    @pytest.mark.asyncio
    async def test_not_found(self):
        self.client.find_email.return_value = EmailLookupResult(status="not_found")
        outcome = await self.op("a")
        assert outcome.status == "failure"
        assert outcome.error == ERR_NOT_FOUND

    @pytest.mark.asyncio
    async def test_found_without_email_is_error(self):
        self.client.find_email.return_value = EmailLookupResult(status="found")
        outcome = await self.op("a")
        assert outcome.error == "lookup_error"

    @pytest.mark.asyncio
    async def test_insufficient_credits(self):
        self.client.find_email.side_effect = InsufficientCreditsError(402, "Insufficient credits")
        outcome = await self.op("a")
        assert outcome.error == ERR_CREDITS
        assert outcome.detail == "Insufficient credits"
        assert is_credit_error(outcome.error)

    @pytest.mark.asyncio
    async def test_unknown_item(self):
        outcome = await self.op("zzz")
        assert outcome.error == ERR_NO_ITEM
        self.client.find_email.assert_not_awaited()


class TestGenerate:
    def setup_method(self):
        self.items = {"a": make_item("a", domain="a.com")}
        self.client = _client()
        self.op = make_generate(self.client, self.items.get)

    @pytest.mark.asyncio
    async def test_success(self):
        self.client.generate_outreach.return_value = OutreachResult(
            success=True, message="Hi there", subject="Collab",
        )
        outcome = await self.op("a")
        assert outcome.ok
        assert outcome.detail == {"message": "Hi there", "subject": "Collab"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [None, "", "   "])
    async def test_empty_message_is_failure(self, message):
        self.client.generate_outreach.return_value = OutreachResult(success=True, message=message)
        outcome = await self.op("a")
        assert outcome.error == ERR_EMPTY_MESSAGE

    @pytest.mark.asyncio
    async def test_backend_reports_failure(self):
        self.client.generate_outreach.return_value = OutreachResult(success=False, error="rate limited")
        outcome = await self.op("a")
        assert outcome.error == "rate limited"

    @pytest.mark.asyncio
    async def test_backend_failure_without_reason(self):
        self.client.generate_outreach.return_value = OutreachResult(success=False)
        assert (await self.op("a")).error == "generation_failed"


class TestBuildOperations:
    def test_registry_kinds(self):
        ops = build_operations(_client(), 7, {})
        assert set(ops) == set(BATCH_KINDS) == {DELETE, FIND_EMAIL, GENERATE}

    @pytest.mark.asyncio
    async def test_mapping_lookup_wrapped(self):
        client = _client()
        client.find_email.return_value = EmailLookupResult(email="x@a.com", status="found")
        ops = build_operations(client, 7, {"a": make_item("a")})
        assert (await ops[FIND_EMAIL]("a")).ok

    @pytest.mark.asyncio
    async def test_callable_lookup(self):
        client = _client()
        client.find_email.return_value = EmailLookupResult(status="not_found")
        ops = build_operations(client, 7, lambda item_id: make_item(str(item_id)))
        assert (await ops[FIND_EMAIL]("q")).error == ERR_NOT_FOUND
