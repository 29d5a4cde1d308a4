# src/selection/store.py — v1
"""Selection store — the full, filter-independent set of selected item ids.

Every effective mutation swaps in a new frozenset snapshot. Mutations that
leave membership unchanged keep the previous snapshot object, so consumers
that memoize on identity (see selection.projector) do not recompute.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from bulkops.core.models import ItemId

logger = logging.getLogger(__name__)

SelectionListener = Callable[[frozenset], None]

_EMPTY: frozenset = frozenset()


class SelectionStore:
    """Owns the Selection Set of one page controller.

    Not thread-safe: every call is expected on the event loop thread.
    """

    def __init__(self, initial: Iterable[ItemId] = ()) -> None:
        self._snapshot: frozenset = frozenset(initial) or _EMPTY
        self._generation = 0
        self._listeners: list[SelectionListener] = []

    # --- Read access ---

    @property
    def snapshot(self) -> frozenset:
        """Current Selection Set (immutable)."""
        return self._snapshot

    @property
    def generation(self) -> int:
        """Incremented on every effective change."""
        return self._generation

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._snapshot

    def __len__(self) -> int:
        return len(self._snapshot)

    def __iter__(self):
        return iter(self._snapshot)

    # --- Mutations ---

    def toggle(self, item_id: ItemId) -> bool:
        """Flip membership of one id.

        Returns:
            True if the id is selected after the call.
        """
        if item_id in self._snapshot:
            self._replace(self._snapshot - {item_id})
            return False
        self._replace(self._snapshot | {item_id})
        return True

    def select_many(self, ids: Iterable[ItemId]) -> None:
        """Union ``ids`` into the selection in a single change."""
        self._replace(self._snapshot | frozenset(ids))

    def deselect_many(self, ids: Iterable[ItemId]) -> None:
        """Remove ``ids`` from the selection in a single change."""
        self._replace(self._snapshot - frozenset(ids))

    def clear(self) -> None:
        """Empty the selection. No-op (same snapshot) when already empty."""
        self._replace(_EMPTY)

    # --- Observation ---

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        """Register ``listener`` for snapshot changes.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _replace(self, new: frozenset) -> None:
        if new == self._snapshot:
            return
        self._snapshot = new if new else _EMPTY
        self._generation += 1
        logger.debug(
            "Selection changed: %d selected (generation %d)",
            len(new), self._generation,
        )
        for listener in list(self._listeners):
            listener(self._snapshot)
