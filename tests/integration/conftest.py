# tests/integration/conftest.py — v1
"""Shared fixtures for integration tests.

Wires a PipelineController to the real REST client and operation registry,
with the backend served in-process through httpx.MockTransport.
"""

from __future__ import annotations

import pytest_asyncio

from bulkops.controller.pipeline import PipelineController
from bulkops.operations.registry import build_operations


@pytest_asyncio.fixture
async def controller(api_client, settings):
    """Loaded controller over the four sample items."""
    holder: dict[str, PipelineController] = {}

    def lookup(item_id):
        return holder["controller"].get_item(item_id)

    ctrl = PipelineController(
        build_operations(api_client, settings.user_id, lookup),
        item_source=lambda: api_client.list_saved(settings.user_id),
        settings=settings,
    )
    holder["controller"] = ctrl
    await ctrl.load()
    yield ctrl
    ctrl.close()
