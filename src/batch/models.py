# src/batch/models.py — v1
"""Batch models: Outcome, Progress, Summary, BatchEvent, BatchJob."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, Field

OutcomeStatus = Literal["success", "failure", "skipped"]
JobStatus = Literal["idle", "running", "complete", "cancelled"]


class Outcome(BaseModel):
    """Per-item result of a batch operation."""

    id: Union[str, int, None] = None
    status: OutcomeStatus
    error: str | None = None
    detail: Any = None

    @classmethod
    def success(cls, detail: Any = None) -> Outcome:
        return cls(status="success", detail=detail)

    @classmethod
    def failure(cls, error: str, detail: Any = None) -> Outcome:
        return cls(status="failure", error=error, detail=detail)

    @classmethod
    def skipped(cls, reason: str | None = None) -> Outcome:
        return cls(status="skipped", error=reason)

    @property
    def ok(self) -> bool:
        return self.status == "success"


class Progress(BaseModel):
    """Progress after an item finished: ``current`` of ``total`` done."""

    current: int
    total: int

    @property
    def fraction(self) -> float:
        return self.current / self.total if self.total else 1.0


class Summary(BaseModel):
    """Terminal tally of a batch run."""

    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed

    @property
    def total(self) -> int:
        return self.succeeded + self.failed + self.skipped


class BatchEvent(BaseModel):
    """One step of a run: the progress reached and the item's outcome."""

    progress: Progress
    outcome: Outcome


class BatchJob(BaseModel):
    """Observable state of the batch a controller is running or just ran.

    Reset to idle once results have been displayed.
    """

    kind: str | None = None
    status: JobStatus = "idle"
    job_id: str | None = None
    total: int = 0
    current: int = 0
    outcomes: dict[Union[str, int], OutcomeStatus] = Field(default_factory=dict)
    summary: Summary | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    @property
    def progress(self) -> Progress:
        return Progress(current=self.current, total=self.total)

    def start(self, kind: str, job_id: str, total: int) -> None:
        """Enter the running state for a new job."""
        self.kind = kind
        self.status = "running"
        self.job_id = job_id
        self.total = total
        self.current = 0
        self.outcomes = {}
        self.summary = None
        self.started_at = datetime.now(timezone.utc)
        self.finished_at = None

    def record(self, event: BatchEvent) -> None:
        """Apply one executor event."""
        self.current = event.progress.current
        if event.outcome.id is not None:
            self.outcomes[event.outcome.id] = event.outcome.status

    def finish(self, summary: Summary) -> None:
        """Enter the terminal state."""
        self.summary = summary
        self.status = "cancelled" if summary.cancelled else "complete"
        self.finished_at = datetime.now(timezone.utc)

    def reset(self) -> None:
        """Back to idle."""
        self.kind = None
        self.status = "idle"
        self.job_id = None
        self.total = 0
        self.current = 0
        self.outcomes = {}
        self.summary = None
        self.started_at = None
        self.finished_at = None
