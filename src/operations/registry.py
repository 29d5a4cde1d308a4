# src/operations/registry.py — v1
"""Per-item operations of the saved pipeline, keyed by batch kind.

Each operation takes one item id (the affiliate link) and resolves to an
Outcome. They talk to the backend through PipelineApiClient; the batch
executor treats them as opaque capabilities.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping

from bulkops.api.client import InsufficientCreditsError, PipelineApiClient
from bulkops.batch.models import Outcome
from bulkops.core.models import AffiliateItem, ItemId

logger = logging.getLogger(__name__)

Operation = Callable[[ItemId], Awaitable[Outcome]]
ItemLookup = Callable[[ItemId], AffiliateItem | None]

DELETE = "delete"
FIND_EMAIL = "find_email"
GENERATE = "generate"

BATCH_KINDS: tuple[str, ...] = (DELETE, FIND_EMAIL, GENERATE)

# Stable error codes carried in Outcome.error
ERR_NOT_FOUND = "not_found"
ERR_LOOKUP = "lookup_error"
ERR_NO_ITEM = "unknown_item"
ERR_CREDITS = "insufficient_credits"
ERR_EMPTY_MESSAGE = "empty_message"


def needs_email_lookup(item: AffiliateItem) -> bool:
    """True unless the item already has an email or a lookup in progress."""
    return not item.has_email


def is_credit_error(error: str | None) -> bool:
    return error == ERR_CREDITS


def _credit_failure(exc: InsufficientCreditsError) -> Outcome:
    return Outcome.failure(ERR_CREDITS, detail=exc.message)


def make_delete(client: PipelineApiClient, user_id: int) -> Operation:
    """Remove one affiliate from the pipeline."""

    async def delete(item_id: ItemId) -> Outcome:
        await client.delete_saved(user_id, str(item_id))
        return Outcome.success()

    return delete


def make_find_email(
    client: PipelineApiClient, user_id: int, lookup: ItemLookup,
) -> Operation:
    """Look up a contact email; 'not found' is a failure the user can retry."""

    async def find_email(item_id: ItemId) -> Outcome:
        item = lookup(item_id)
        if item is None:
            return Outcome.failure(ERR_NO_ITEM)
        try:
            result = await client.find_email(user_id, item)
        except InsufficientCreditsError as exc:
            return _credit_failure(exc)
        if result.status == "found" and result.email:
            return Outcome.success(detail=result.email)
        if result.status == "not_found":
            return Outcome.failure(ERR_NOT_FOUND)
        return Outcome.failure(ERR_LOOKUP, detail=result.status)

    return find_email


def make_generate(client: PipelineApiClient, lookup: ItemLookup) -> Operation:
    """Generate an outreach message; an empty message counts as a failure."""

    async def generate(item_id: ItemId) -> Outcome:
        item = lookup(item_id)
        if item is None:
            return Outcome.failure(ERR_NO_ITEM)
        try:
            result = await client.generate_outreach(item)
        except InsufficientCreditsError as exc:
            return _credit_failure(exc)
        if not result.success:
            return Outcome.failure(result.error or "generation_failed")
        message = result.message
        if not isinstance(message, str) or not message.strip():
            logger.error("Generation returned an empty message for %s", item.domain or item_id)
            return Outcome.failure(ERR_EMPTY_MESSAGE)
        return Outcome.success(detail={"message": message, "subject": result.subject})

    return generate


def build_operations(
    client: PipelineApiClient,
    user_id: int,
    lookup: ItemLookup | Mapping[ItemId, AffiliateItem],
) -> dict[str, Operation]:
    """Build the ``{kind: operation}`` registry used by the page controller.

    Args:
        client: Backend client.
        user_id: Owner of the pipeline.
        lookup: Item resolver; a mapping is accepted and wrapped.
    """
    if isinstance(lookup, Mapping):
        resolve: ItemLookup = lookup.get
    else:
        resolve = lookup
    return {
        DELETE: make_delete(client, user_id),
        FIND_EMAIL: make_find_email(client, user_id, resolve),
        GENERATE: make_generate(client, resolve),
    }
