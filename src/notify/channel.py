# src/notify/channel.py — v1
"""Notification channel — transient, auto-expiring user-facing messages.

Every pushed notification owns a timer handle scheduled on the running
event loop. Dismissing a notification cancels its handle, so no callback
ever fires against a notification that is already gone.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

Severity = Literal["error", "warning", "info", "success"]

DEFAULT_TTL_MS = 5000

_LOG_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "success": logging.INFO,
}


class Notification(BaseModel):
    """A single transient message."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    message: str
    severity: Severity = "info"
    detail: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    ttl_ms: int = DEFAULT_TTL_MS


NotificationListener = Callable[[list[Notification]], Any]


class NotificationChannel:
    """Ordered collection of live notifications (oldest first).

    Args:
        default_ttl_ms: Auto-dismiss delay for pushes without an explicit ttl.
            0 keeps notifications until dismissed.
    """

    def __init__(self, default_ttl_ms: int = DEFAULT_TTL_MS) -> None:
        if default_ttl_ms < 0:
            raise ValueError("default_ttl_ms must be >= 0")
        self.default_ttl_ms = default_ttl_ms
        self._items: dict[str, Notification] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._listeners: list[NotificationListener] = []

    @property
    def notifications(self) -> list[Notification]:
        """Live notifications in insertion order."""
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get(self, notification_id: str) -> Notification | None:
        return self._items.get(notification_id)

    def push(
        self,
        message: str,
        severity: Severity = "info",
        *,
        detail: str | None = None,
        ttl_ms: int | None = None,
    ) -> str:
        """Add a notification and schedule its auto-dismissal.

        Returns:
            The new notification's id.
        """
        ttl = self.default_ttl_ms if ttl_ms is None else ttl_ms
        note = Notification(message=message, severity=severity, detail=detail, ttl_ms=ttl)
        self._items[note.id] = note
        logger.log(_LOG_LEVELS.get(severity, logging.INFO), "Notification [%s]: %s", severity, message)

        if ttl > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("No running loop; notification %s kept until dismissed", note.id)
            else:
                self._timers[note.id] = loop.call_later(ttl / 1000.0, self._expire, note.id)

        self._notify()
        return note.id

    def dismiss(self, notification_id: str) -> None:
        """Remove a notification now and cancel its timer. Unknown ids are ignored."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()
        if self._items.pop(notification_id, None) is not None:
            self._notify()

    def clear(self) -> None:
        """Remove every notification and cancel every pending timer."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        had_items = bool(self._items)
        self._items.clear()
        if had_items:
            self._notify()

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        """Register ``listener``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _expire(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        if self._items.pop(notification_id, None) is not None:
            logger.debug("Notification %s expired", notification_id)
            self._notify()

    def _notify(self) -> None:
        snapshot = self.notifications
        for listener in list(self._listeners):
            listener(snapshot)
