# src/controller/pipeline.py — v1
"""Page controller for the saved-affiliates pipeline view.

Composes the selection store, view projector, batch executor and
notification channel, and owns all of their state for one view:

    toggle / select_all_visible  ->  SelectionStore
    set_filter / set_items       ->  ViewProjector recomputes on next read
    run_batch(kind)              ->  BatchExecutor over the Visible Selection
                                 ->  BatchJob progress, summary notification
                                 ->  selection pruned of deleted items

Only one batch runs at a time per controller; a second trigger while
``is_running`` raises BatchInProgressError.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from typing import Any

from bulkops.batch.executor import BatchExecutor, BatchRun, CancelToken, Operation
from bulkops.batch.models import BatchJob, Outcome, Progress, Summary
from bulkops.config.settings import Settings
from bulkops.controller.messages import (
    ALL_HAVE_EMAILS,
    LOAD_FAILED,
    retry_message,
    summary_message,
)
from bulkops.core.errors import BatchInProgressError, ItemSourceError, UnknownBatchKindError
from bulkops.core.models import DEFAULT_FILTER_STATE, AffiliateItem, FilterState, ItemId
from bulkops.logging.context import clear_context, set_job_context
from bulkops.notify.channel import NotificationChannel
from bulkops.operations.registry import (
    DELETE,
    ERR_LOOKUP,
    ERR_NOT_FOUND,
    FIND_EMAIL,
    GENERATE,
    needs_email_lookup,
)
from bulkops.selection.projector import Projection, ViewProjector, affiliate_projector
from bulkops.selection.store import SelectionStore

logger = logging.getLogger(__name__)

ItemSource = Callable[[], Awaitable[Sequence[AffiliateItem]]]
ProgressListener = Callable[[Progress], Any]


class PipelineController:
    """State owner and action surface of one pipeline view.

    Args:
        operations: ``{kind: operation}`` registry (see operations.registry).
        item_source: Async loader of the item collection, used by ``load()``.
        settings: Pacing and notification timing. Loaded from .env if None.
        notifications: Channel to push results on; one is created if None.
        executor: Batch executor; built from settings if None.
        projector: View projector; the affiliate projector if None.
        on_progress: Called (or awaited) after every processed item.
    """

    def __init__(
        self,
        operations: Mapping[str, Operation],
        *,
        item_source: ItemSource | None = None,
        settings: Settings | None = None,
        notifications: NotificationChannel | None = None,
        executor: BatchExecutor | None = None,
        projector: ViewProjector[AffiliateItem, FilterState] | None = None,
        on_progress: ProgressListener | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._operations = dict(operations)
        self._item_source = item_source
        self._executor = executor or BatchExecutor(delay_s=self._settings.inter_item_delay_s)
        self._projector = projector or affiliate_projector()
        self._on_progress = on_progress

        self.selection = SelectionStore()
        self.notifications = notifications or NotificationChannel(
            default_ttl_ms=self._settings.notification_ttl_ms
        )
        self.job = BatchJob()

        self._items: tuple[AffiliateItem, ...] = ()
        self._by_key: dict[ItemId, AffiliateItem] = {}
        self._filter: FilterState = DEFAULT_FILTER_STATE
        self._running = False
        self._cancel_token: CancelToken | None = None
        self._reset_handle: asyncio.TimerHandle | None = None
        self._failed: dict[str, set[ItemId]] = {}
        self.messages: dict[ItemId, dict[str, Any]] = {}

    # --- Item collection ---

    @property
    def items(self) -> tuple[AffiliateItem, ...]:
        return self._items

    def get_item(self, item_id: ItemId) -> AffiliateItem | None:
        return self._by_key.get(item_id)

    async def load(self) -> tuple[AffiliateItem, ...]:
        """Fetch the item collection from the item source.

        Raises:
            ItemSourceError: If the source fails. An error notification is
                pushed once; the selection is left untouched.
        """
        if self._item_source is None:
            raise ItemSourceError("No item source configured")
        try:
            items = await self._item_source()
        except Exception as exc:
            logger.exception("Failed to load items")
            self.notifications.push(LOAD_FAILED, "error", detail=str(exc) or None)
            raise ItemSourceError(str(exc) or type(exc).__name__) from exc
        self.set_items(items)
        logger.info("Loaded %d item(s)", len(self._items))
        return self._items

    def set_items(self, items: Iterable[AffiliateItem]) -> None:
        """Replace the collection. Selected ids no longer present are dropped."""
        self._items = tuple(items)
        self._by_key = {item.key: item for item in self._items}
        stale = [i for i in self.selection.snapshot if i not in self._by_key]
        if stale:
            logger.debug("Dropping %d stale selected id(s)", len(stale))
            self.selection.deselect_many(stale)

    def _replace_item(self, item: AffiliateItem) -> None:
        self._items = tuple(item if existing.key == item.key else existing for existing in self._items)
        self._by_key[item.key] = item

    # --- Filter / projection ---

    @property
    def filter(self) -> FilterState:
        return self._filter

    def set_filter(self, state: FilterState) -> None:
        self._filter = state

    @property
    def projection(self) -> Projection[AffiliateItem]:
        return self._projector.project(self._items, self._filter, self.selection.snapshot)

    @property
    def visible_items(self) -> tuple[AffiliateItem, ...]:
        return self.projection.visible_items

    @property
    def visible_selection(self) -> frozenset:
        return self.projection.visible_selection

    # --- Selection actions ---

    def toggle(self, item_id: ItemId) -> bool:
        return self.selection.toggle(item_id)

    def select_all_visible(self) -> None:
        self.selection.select_many(self.projection.visible_ids)

    def deselect_all_visible(self) -> None:
        self.selection.deselect_many(self.projection.visible_ids)

    def toggle_all_visible(self) -> None:
        """Header checkbox: deselect all visible if they are all selected, else select them."""
        if self.projection.all_visible_selected:
            self.deselect_all_visible()
        else:
            self.select_all_visible()

    def clear_selection(self) -> None:
        self.selection.clear()

    # --- Batch actions ---

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def kinds(self) -> list[str]:
        return list(self._operations)

    def failed_ids(self, kind: str) -> frozenset:
        """Ids whose last ``kind`` attempt failed (retry candidates)."""
        return frozenset(self._failed.get(kind, ()))

    def _operation(self, kind: str) -> Operation:
        try:
            return self._operations[kind]
        except KeyError:
            raise UnknownBatchKindError(kind, self.kinds) from None

    def _guard(self, kind: str) -> None:
        if self._running:
            raise BatchInProgressError(self.job.kind or kind)

    def pending_email_lookups(self) -> list[ItemId]:
        """Visible selected ids that still need an email lookup."""
        return [
            i for i in self.projection.ordered_selection
            if (item := self._by_key.get(i)) is None or needs_email_lookup(item)
        ]

    async def run_batch(self, kind: str) -> Summary | None:
        """Run ``kind`` over the Visible Selection, in display order.

        Returns:
            The Summary, or None when nothing is selected in view.

        Raises:
            UnknownBatchKindError: No operation registered for ``kind``.
            BatchInProgressError: Another batch is still running.
        """
        operation = self._operation(kind)
        self._guard(kind)

        targets = self.projection.ordered_selection
        if not targets:
            logger.debug("run_batch(%s): nothing selected in view", kind)
            return None

        skipped = 0
        if kind == FIND_EMAIL:
            lookups = self.pending_email_lookups()
            skipped = len(targets) - len(lookups)
            targets = lookups
            if not targets:
                summary = Summary(skipped=skipped)
                self.job.start(kind, uuid.uuid4().hex[:12], 0)
                self.job.finish(summary)
                self.notifications.push(ALL_HAVE_EMAILS, "info")
                self._schedule_reset()
                return summary

        token = CancelToken()
        job_id = uuid.uuid4().hex[:12]
        self._cancel_reset()
        self._running = True
        self._cancel_token = token
        self.job.start(kind, job_id, len(targets))
        set_job_context(job_id, kind)
        logger.info("Starting %s batch %s over %d item(s)", kind, job_id, len(targets))

        run = self._executor.start(targets, operation, cancel=token, skipped=skipped)
        try:
            async for event in run:
                self.job.record(event)
                self._apply_outcome(kind, event.outcome)
                await self._emit_progress(event.progress)
        except BaseException:
            await run.aclose()
            logger.warning(
                "Batch %s aborted after %d of %d item(s)", job_id, self.job.current, len(targets),
            )
            self._settle(kind, run, run.summary.model_copy(update={"cancelled": True}))
            raise
        finally:
            self._running = False
            self._cancel_token = None
            clear_context()

        summary = run.summary
        self._settle(kind, run, summary)

        message, severity = summary_message(kind, summary, run.outcomes, total=len(targets))
        self.notifications.push(message, severity)
        return summary

    async def retry(self, kind: str, item_id: ItemId) -> Outcome:
        """Re-submit one item through the ``kind`` operation."""
        operation = self._operation(kind)
        self._guard(kind)

        self._running = True
        try:
            run = self._executor.start([item_id], operation)
            outcome = Outcome(id=item_id, status="skipped")
            async for event in run:
                outcome = event.outcome
        finally:
            self._running = False

        self._apply_outcome(kind, outcome)
        if kind == DELETE and outcome.ok:
            self._prune_deleted([item_id])
        message, severity = retry_message(kind, outcome)
        self.notifications.push(message, severity)
        return outcome

    def cancel(self) -> bool:
        """Request cancellation of the running batch.

        Returns:
            False when no batch is running.
        """
        if self._cancel_token is None:
            return False
        logger.info("Cancellation requested for batch %s", self.job.job_id)
        self._cancel_token.cancel()
        return True

    def reset_job(self) -> None:
        """Return the job to idle (results dismissed)."""
        self._cancel_reset()
        if not self._running:
            self.job.reset()

    def close(self) -> None:
        """Cancel every pending timer owned by this controller."""
        self._cancel_reset()
        self.notifications.clear()

    # --- Internals ---

    def _apply_outcome(self, kind: str, outcome: Outcome) -> None:
        if outcome.id is None:
            return
        failed = self._failed.setdefault(kind, set())
        if outcome.ok:
            failed.discard(outcome.id)
        elif outcome.status == "failure":
            failed.add(outcome.id)

        item = self._by_key.get(outcome.id)
        if item is None:
            return
        if kind == FIND_EMAIL:
            if outcome.ok and isinstance(outcome.detail, str):
                self._replace_item(item.model_copy(update={"email": outcome.detail, "email_status": "found"}))
            elif outcome.error == ERR_NOT_FOUND:
                self._replace_item(item.model_copy(update={"email_status": "not_found"}))
            elif outcome.error == ERR_LOOKUP:
                self._replace_item(item.model_copy(update={"email_status": "error"}))
        elif kind == GENERATE and outcome.ok and isinstance(outcome.detail, dict):
            self.messages[outcome.id] = outcome.detail

    def _settle(self, kind: str, run: BatchRun, summary: Summary) -> None:
        """Put the job in its terminal state and start the display timer."""
        self.job.finish(summary)
        if kind == DELETE:
            self._prune_deleted(run.succeeded_ids)
        self._schedule_reset()

    def _prune_deleted(self, deleted: Sequence[ItemId]) -> None:
        if not deleted:
            return
        gone = frozenset(deleted)
        self.selection.deselect_many(gone)
        self.set_items(item for item in self._items if item.key not in gone)
        for failed in self._failed.values():
            failed.difference_update(gone)
        logger.info("Removed %d deleted item(s) from selection and view", len(gone))

    async def _emit_progress(self, progress: Progress) -> None:
        if self._on_progress is None:
            return
        result = self._on_progress(progress)
        if inspect.isawaitable(result):
            await result

    def _schedule_reset(self) -> None:
        self._cancel_reset()
        delay = self._settings.result_display_s
        if delay <= 0:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reset_handle = loop.call_later(delay, self._expire_job)

    def _expire_job(self) -> None:
        self._reset_handle = None
        if not self._running:
            self.job.reset()

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None
