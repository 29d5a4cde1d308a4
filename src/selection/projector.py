# src/selection/projector.py — v1
"""View projector — derive the visible items and the Visible Selection.

The projection is a pure function of (items, filter state, selection
snapshot). The projector caches the last result and returns it as long as
all three inputs are the very same objects, so callers can ask for the
projection on every render without paying for the filter again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from bulkops.core.models import AffiliateItem, FilterState, ItemId
from bulkops.selection.filters import matches

logger = logging.getLogger(__name__)

T = TypeVar("T")
S = TypeVar("S")


@dataclass(frozen=True)
class Projection(Generic[T]):
    """Result of one projection.

    Invariants:
        visible_selection == selection & visible_ids
        visible_selection <= selection
        visible_selection <= visible_ids
    """

    visible_items: tuple[T, ...]
    ordered_ids: tuple
    visible_ids: frozenset
    visible_selection: frozenset

    @property
    def ordered_selection(self) -> list[ItemId]:
        """Visible Selection in the order the items are displayed."""
        return [i for i in self.ordered_ids if i in self.visible_selection]

    @property
    def all_visible_selected(self) -> bool:
        """True when at least one item is visible and all of them are selected."""
        return bool(self.visible_ids) and self.visible_ids <= self.visible_selection


class ViewProjector(Generic[T, S]):
    """Memoized projector over a predicate and a key function.

    Args:
        predicate: ``predicate(item, state) -> bool`` deciding visibility.
        key: ``key(item) -> ItemId`` giving the item's selection key.
    """

    def __init__(
        self,
        predicate: Callable[[T, S], bool],
        key: Callable[[T], ItemId],
    ) -> None:
        self._predicate = predicate
        self._key = key
        self._last_inputs: tuple[Any, Any, Any] | None = None
        self._last: Projection[T] | None = None
        self.compute_count = 0

    def project(
        self, items: Sequence[T], state: S, selection: frozenset,
    ) -> Projection[T]:
        """Project ``items`` under ``state`` against ``selection``."""
        if self._last is not None and self._last_inputs is not None:
            last_items, last_state, last_selection = self._last_inputs
            if (
                last_items is items
                and last_state is state
                and last_selection is selection
            ):
                return self._last

        visible = tuple(item for item in items if self._predicate(item, state))
        ordered_ids = tuple(self._key(item) for item in visible)
        visible_ids = frozenset(ordered_ids)
        projection = Projection(
            visible_items=visible,
            ordered_ids=ordered_ids,
            visible_ids=visible_ids,
            visible_selection=selection & visible_ids,
        )
        self.compute_count += 1
        self._last_inputs = (items, state, selection)
        self._last = projection
        logger.debug(
            "Projected %d/%d items visible, %d of %d selected visible",
            len(visible), len(items), len(projection.visible_selection), len(selection),
        )
        return projection

    def invalidate(self) -> None:
        """Drop the cached projection."""
        self._last_inputs = None
        self._last = None


def is_all_visible_selected(projection: Projection[Any]) -> bool:
    """Header checkbox state for ``projection``."""
    return projection.all_visible_selected


def affiliate_projector() -> ViewProjector[AffiliateItem, FilterState]:
    """Projector for the saved-affiliates pipeline, keyed by link."""
    return ViewProjector(predicate=matches, key=lambda item: item.key)
