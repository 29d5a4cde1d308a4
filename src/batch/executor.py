# src/batch/executor.py — v1
"""Batch executor — run one async operation over a list of ids, in order.

Items are processed strictly one after another (downstream APIs throttle),
with an optional fixed pause between items. A failing item is recorded and
the run moves on. Progress is exposed two ways:

    # Event stream, framework independent
    run = executor.start(ids, operation)
    async for event in run:
        render(event.progress, event.outcome)
    summary = run.summary

    # Callback style
    summary = await executor.run(ids, operation, on_progress=render)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from bulkops.batch.aggregator import OutcomeAggregator
from bulkops.batch.models import BatchEvent, Outcome, Progress, Summary
from bulkops.core.models import ItemId
from bulkops.logging.context import set_item_context

logger = logging.getLogger(__name__)

Operation = Callable[[ItemId], Awaitable[Any]]
ProgressCallback = Callable[[Progress], Any]


class CancelToken:
    """Cooperative cancellation flag, checked before each item starts."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


def coerce_outcome(item_id: ItemId, result: Any) -> Outcome:
    """Turn an operation's return value into an Outcome for ``item_id``.

    An Outcome is kept (with its id set), ``False`` is a failure and any
    other value is a success carrying that value as detail.
    """
    if isinstance(result, Outcome):
        if result.id == item_id:
            return result
        return result.model_copy(update={"id": item_id})
    if result is False:
        return Outcome(id=item_id, status="failure", error="operation returned False")
    detail = None if result is True else result
    return Outcome(id=item_id, status="success", detail=detail)


class BatchRun:
    """One execution of an operation over an ordered list of ids.

    Iterate it (``async for``) to drive the run; each step yields a
    BatchEvent once the item has finished. A run can only be iterated once.
    """

    def __init__(
        self,
        ids: Sequence[ItemId],
        operation: Operation,
        *,
        delay_s: float = 0.0,
        cancel: CancelToken | None = None,
        skipped: int = 0,
    ) -> None:
        self._ids = list(ids)
        self._operation = operation
        self._delay_s = delay_s
        self._cancel = cancel
        self._aggregator = OutcomeAggregator(skipped=skipped)
        self._outcomes: list[Outcome] = []
        self._started = False
        self._stream: AsyncGenerator[BatchEvent, None] | None = None
        self.done = False

    @property
    def total(self) -> int:
        return len(self._ids)

    @property
    def outcomes(self) -> list[Outcome]:
        """Outcomes of attempted items, in processing order."""
        return list(self._outcomes)

    @property
    def failed_ids(self) -> list[ItemId]:
        return self._aggregator.failed_ids

    @property
    def succeeded_ids(self) -> list[ItemId]:
        return self._aggregator.succeeded_ids

    @property
    def summary(self) -> Summary:
        """Summary of everything accounted for so far."""
        return self._aggregator.summary()

    def __aiter__(self) -> AsyncIterator[BatchEvent]:
        if self._started:
            raise RuntimeError("BatchRun can only be iterated once")
        self._started = True
        self._stream = self._events()
        return self._stream

    async def aclose(self) -> None:
        """Stop a run that is being iterated; ``done`` is set once it has stopped."""
        if self._stream is not None:
            await self._stream.aclose()

    async def _events(self) -> AsyncGenerator[BatchEvent, None]:
        total = len(self._ids)
        logger.info("Batch started: %d item(s)", total)

        try:
            for index, item_id in enumerate(self._ids):
                if self._cancel_requested():
                    self._aggregator.mark_cancelled()
                    logger.info(
                        "Batch cancelled before item %d/%d; %d item(s) not attempted",
                        index + 1, total, total - index,
                    )
                    break

                outcome = await self._attempt(item_id)
                self._aggregator.accumulate(outcome)
                self._outcomes.append(outcome)

                yield BatchEvent(
                    progress=Progress(current=index + 1, total=total),
                    outcome=outcome,
                )

                if self._delay_s > 0 and index < total - 1 and not self._cancel_requested():
                    await asyncio.sleep(self._delay_s)
        finally:
            self.done = True

        summary = self._aggregator.summary()
        logger.info(
            "Batch finished: %d succeeded, %d failed, %d skipped%s",
            summary.succeeded, summary.failed, summary.skipped,
            " (cancelled)" if summary.cancelled else "",
        )

    def _cancel_requested(self) -> bool:
        return self._cancel is not None and self._cancel.cancelled

    async def _attempt(self, item_id: ItemId) -> Outcome:
        set_item_context(item_id)
        try:
            result = await self._operation(item_id)
        except Exception as exc:
            logger.warning("Item %s failed: %s", item_id, exc, exc_info=True)
            return Outcome(
                id=item_id, status="failure", error=str(exc) or type(exc).__name__,
            )
        finally:
            set_item_context(None)

        outcome = coerce_outcome(item_id, result)
        if not outcome.ok:
            logger.warning("Item %s failed: %s", item_id, outcome.error)
        return outcome


class BatchExecutor:
    """Factory for sequential batch runs sharing an inter-item delay.

    Args:
        delay_s: Pause inserted between two items (not after the last one).
    """

    def __init__(self, delay_s: float = 0.0) -> None:
        if delay_s < 0:
            raise ValueError("delay_s must be >= 0")
        self.delay_s = delay_s

    def start(
        self,
        ids: Sequence[ItemId],
        operation: Operation,
        *,
        cancel: CancelToken | None = None,
        skipped: int = 0,
    ) -> BatchRun:
        """Prepare a run; nothing executes until it is iterated."""
        return BatchRun(
            ids, operation, delay_s=self.delay_s, cancel=cancel, skipped=skipped,
        )

    async def run(
        self,
        ids: Sequence[ItemId],
        operation: Operation,
        *,
        on_progress: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
        skipped: int = 0,
    ) -> Summary:
        """Run ``operation`` over ``ids`` and return the Summary.

        Args:
            ids: Item ids, processed in this order.
            operation: Async per-item operation.
            on_progress: Called (or awaited) after each item with its Progress.
            cancel: Token checked before each item.
            skipped: Items the caller excluded up front, folded into the Summary.

        Returns:
            Summary of the run. Per-item errors never propagate.
        """
        batch = self.start(ids, operation, cancel=cancel, skipped=skipped)
        try:
            async for event in batch:
                if on_progress is not None:
                    result = on_progress(event.progress)
                    if inspect.isawaitable(result):
                        await result
        finally:
            await batch.aclose()
        return batch.summary
