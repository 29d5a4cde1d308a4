# src/api/client.py — v1
"""Async REST client for the affiliate pipeline backend.

Usage:
    async with PipelineApiClient(settings.api_base_url, token=settings.api_token) as api:
        items = await api.list_saved(user_id)
        await api.delete_saved(user_id, items[0].link)

Every non-2xx response is raised as ApiError (or a subclass); the caller
decides whether that is a per-item failure or a systemic one.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from bulkops.api.models import EmailLookupResult, OutreachResult
from bulkops.core.errors import BulkOpsError
from bulkops.core.models import AffiliateItem

logger = logging.getLogger(__name__)


class ApiError(BulkOpsError):
    """A backend call failed. ``status`` is 0 for transport errors."""

    def __init__(self, status: int, message: str, payload: Any = None) -> None:
        self.status = status
        self.message = message
        self.payload = payload
        super().__init__(f"HTTP {status}: {message}" if status else message)


class AuthenticationError(ApiError):
    """401: the session is missing or expired."""


class InsufficientCreditsError(ApiError):
    """402, or a body reporting that the account ran out of credits."""


def _error_message(response: httpx.Response) -> tuple[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if isinstance(payload, dict):
        return str(payload.get("error") or payload.get("message") or response.reason_phrase), payload
    return response.reason_phrase, payload


def raise_for_response(response: httpx.Response) -> None:
    """Map an unsuccessful response to the ApiError hierarchy."""
    if response.is_success:
        return
    message, payload = _error_message(response)
    status = response.status_code
    if status == 401:
        raise AuthenticationError(status, message, payload)
    if status == 402 or "insufficient" in message.lower():
        raise InsufficientCreditsError(status, message, payload)
    raise ApiError(status, message, payload)


class PipelineApiClient:
    """Thin wrapper over httpx.AsyncClient for the pipeline endpoints.

    Args:
        base_url: Backend origin, e.g. "https://app.example.com".
        token: Bearer token sent with every request (optional).
        timeout_s: Per-request timeout.
        transport: Custom httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> PipelineApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # --- Low level ---

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ApiError(0, f"{type(exc).__name__}: {exc}") from exc

        raise_for_response(response)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, "Invalid JSON in response") from exc

    # --- Saved pipeline ---

    async def list_saved(self, user_id: int) -> list[AffiliateItem]:
        """GET /api/affiliates/saved — all saved affiliates, newest first."""
        data = await self._request("GET", "/api/affiliates/saved", params={"userId": user_id})
        rows = data.get("affiliates", []) if isinstance(data, dict) else data
        items = [AffiliateItem.model_validate(row) for row in rows or []]
        logger.debug("Loaded %d saved affiliates for user %s", len(items), user_id)
        return items

    async def delete_saved(self, user_id: int, link: str) -> None:
        """DELETE /api/affiliates/saved — remove one affiliate by link."""
        await self._request(
            "DELETE", "/api/affiliates/saved", params={"userId": user_id, "link": link},
        )

    # --- Enrichment / AI ---

    async def find_email(self, user_id: int, item: AffiliateItem) -> EmailLookupResult:
        """POST /api/enrich/email — look up a contact email for one affiliate."""
        body = {
            "affiliateId": item.id,
            "userId": user_id,
            "domain": item.domain,
            "source": item.source,
        }
        data = await self._request("POST", "/api/enrich/email", json=body)
        return EmailLookupResult.model_validate(data)

    async def generate_outreach(self, item: AffiliateItem) -> OutreachResult:
        """POST /api/ai/outreach — generate an outreach message for one affiliate."""
        body = {
            "affiliateId": item.id,
            "affiliate": item.model_dump(by_alias=True, exclude_none=True),
        }
        data = await self._request("POST", "/api/ai/outreach", json=body)
        return OutreachResult.model_validate(data)
