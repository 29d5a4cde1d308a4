# src/batch/aggregator.py — v1
"""Outcome aggregator — additive per-status counters for one batch run."""

from __future__ import annotations

from bulkops.batch.models import Outcome, Summary


class OutcomeAggregator:
    """Tally outcomes into a Summary.

    Accepts Outcome objects or raw status strings. Anything that is not a
    recognised success or skip counts as a failure; accumulate never raises.
    """

    def __init__(self, skipped: int = 0) -> None:
        self.reset()
        self._skipped = max(skipped, 0)

    def accumulate(self, outcome: Outcome | str | object) -> None:
        """Count one outcome in its bucket."""
        status = outcome.status if isinstance(outcome, Outcome) else outcome
        item_id = outcome.id if isinstance(outcome, Outcome) else None

        if status == "success":
            self._succeeded += 1
            if item_id is not None:
                self._succeeded_ids.append(item_id)
        elif status == "skipped":
            self._skipped += 1
        else:
            self._failed += 1
            if item_id is not None:
                self._failed_ids.append(item_id)

    def mark_cancelled(self) -> None:
        self._cancelled = True

    def summary(self) -> Summary:
        return Summary(
            succeeded=self._succeeded,
            failed=self._failed,
            skipped=self._skipped,
            cancelled=self._cancelled,
        )

    @property
    def failed_ids(self) -> list:
        """Ids of failed items, in processing order."""
        return list(self._failed_ids)

    @property
    def succeeded_ids(self) -> list:
        """Ids of succeeded items, in processing order."""
        return list(self._succeeded_ids)

    def reset(self) -> None:
        self._succeeded = 0
        self._failed = 0
        self._skipped = 0
        self._cancelled = False
        self._failed_ids: list = []
        self._succeeded_ids: list = []
