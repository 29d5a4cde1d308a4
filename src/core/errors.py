# src/core/errors.py — v1
"""Exception hierarchy shared across bulkops modules."""

from __future__ import annotations


class BulkOpsError(Exception):
    """Base class for all bulkops errors."""


class ItemSourceError(BulkOpsError):
    """The item collection could not be loaded (network, auth, backend)."""


class BatchInProgressError(BulkOpsError):
    """A batch was triggered while another one is still running."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"A '{kind}' batch is already running")


class UnknownBatchKindError(BulkOpsError):
    """No per-item operation is registered for the requested batch kind."""

    def __init__(self, kind: str, available: list[str]) -> None:
        self.kind = kind
        self.available = available
        super().__init__(
            f"Unknown batch kind '{kind}' (available: {', '.join(available) or 'none'})"
        )
