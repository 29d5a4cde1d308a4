# src/logging/context.py — v1
"""Contextual logging support — attach job_id, batch kind and item to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per batch job.
_job_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "job_id", default=None
)
_batch_kind: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch_kind", default=None
)
_item_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "item_id", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    job_id: str | None = None
    batch_kind: str | None = None
    item_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        job_id=_job_id.get(),
        batch_kind=_batch_kind.get(),
        item_id=_item_id.get(),
    )


def set_job_context(job_id: str, batch_kind: str) -> None:
    """Set job-level context (called once per batch job)."""
    _job_id.set(job_id)
    _batch_kind.set(batch_kind)


def set_item_context(item_id: object | None) -> None:
    """Set the item currently being processed (None clears it)."""
    _item_id.set(None if item_id is None else str(item_id))


def clear_context() -> None:
    """Reset all context variables."""
    _job_id.set(None)
    _batch_kind.set(None)
    _item_id.set(None)
