"""Bounded, observable notification queue with severity-based auto-dismiss."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable

from services.timers import LoopScheduler, Scheduler, TimerHandle

from .schemas import NotificationItem, Severity

DEFAULT_NOTIFICATION_LIMIT = 1
DEFAULT_REMOVE_DELAY_MS = 1_000_000
AUTO_DISMISS_DELAYS_MS: dict[Severity, int] = {
    Severity.SUCCESS: 3000,
    Severity.DEFAULT: 4000,
    Severity.WARNING: 4000,
    Severity.ERROR: 5000,
    Severity.DESTRUCTIVE: 5000,
}

Snapshot = tuple[NotificationItem, ...]
Listener = Callable[[Snapshot], None]
logger = logging.getLogger(__name__)

_UNSET: Any = object()


def resolve_auto_dismiss_delay_ms(
    severity: Severity | str = Severity.DEFAULT,
    duration_ms: float | None = None,
) -> float | None:
    """Return the auto-dismiss delay, or None when the item never expires."""
    if duration_ms is not None:
        if math.isinf(duration_ms) and duration_ms > 0:
            return None
        if duration_ms > 0:
            return duration_ms
    try:
        tier = Severity(severity)
    except ValueError:
        tier = Severity.DEFAULT
    return AUTO_DISMISS_DELAYS_MS[tier]


@dataclass(frozen=True)
class NotificationHandle:
    """Imperative control over a notification returned by ``notify``."""

    id: str
    store: "NotificationStore"

    def dismiss(self) -> None:
        self.store.dismiss(self.id)

    def update(
        self,
        *,
        title: str | None = _UNSET,
        description: str | None = _UNSET,
        severity: Severity | str = _UNSET,
        duration_ms: float | None = _UNSET,
    ) -> None:
        self.store.update(
            self.id,
            title=title,
            description=description,
            severity=severity,
            duration_ms=duration_ms,
        )


class NotificationStore:
    """Owns the notification list, its timers and its subscribers."""

    def __init__(
        self,
        *,
        limit: int = DEFAULT_NOTIFICATION_LIMIT,
        remove_delay_ms: float = DEFAULT_REMOVE_DELAY_MS,
        scheduler: Scheduler | None = None,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if remove_delay_ms < 0:
            raise ValueError("remove_delay_ms must be non-negative")
        self.limit = limit
        self.remove_delay_ms = remove_delay_ms
        self.scheduler: Scheduler = scheduler or LoopScheduler()
        self._items: list[NotificationItem] = []
        self._listeners: list[Listener] = []
        self._auto_dismiss_timers: dict[str, TimerHandle] = {}
        self._removal_timers: dict[str, TimerHandle] = {}
        self._counter = 0

    def snapshot(self) -> Snapshot:
        return tuple(self._items)

    def visible(self) -> Snapshot:
        return tuple(item for item in self._items if item.open)

    def notify(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        severity: Severity | str = Severity.DEFAULT,
        duration_ms: float | None = None,
    ) -> NotificationHandle:
        """Insert a notification at the front of the list and arm its auto-dismiss."""
        item = NotificationItem(
            id=self._next_id(),
            severity=Severity(severity),
            title=title,
            description=description,
            open=True,
            duration_ms=duration_ms,
        )

        items = [item, *self._items]
        for evicted in items[self.limit :]:
            self._cancel_timers(evicted.id)
        self._items = items[: self.limit]

        self._arm_auto_dismiss(item)
        self._emit()
        return NotificationHandle(id=item.id, store=self)

    def dismiss(self, notification_id: str | None = None) -> None:
        """Close one notification (or all of them) and queue physical removal."""
        changed = False
        items: list[NotificationItem] = []
        for item in self._items:
            if notification_id is not None and item.id != notification_id:
                items.append(item)
                continue
            self._cancel(self._auto_dismiss_timers, item.id)
            if item.open:
                item = item.model_copy(update={"open": False})
                changed = True
            self._queue_removal(item.id)
            items.append(item)

        if changed:
            self._items = items
            self._emit()

    def update(
        self,
        notification_id: str,
        *,
        title: str | None = _UNSET,
        description: str | None = _UNSET,
        severity: Severity | str = _UNSET,
        duration_ms: float | None = _UNSET,
    ) -> None:
        """Merge payload changes into one item; a new duration restarts its timer."""
        changes: dict[str, Any] = {}
        if title is not _UNSET:
            changes["title"] = title
        if description is not _UNSET:
            changes["description"] = description
        if severity is not _UNSET:
            changes["severity"] = Severity(severity)
        if duration_ms is not _UNSET:
            changes["duration_ms"] = duration_ms
        if not changes:
            return

        changed = False
        items: list[NotificationItem] = []
        for item in self._items:
            if item.id == notification_id:
                item = item.model_copy(update=changes)
                changed = True
                if "duration_ms" in changes and item.open:
                    self._cancel(self._auto_dismiss_timers, item.id)
                    self._arm_auto_dismiss(item)
            items.append(item)

        if changed:
            self._items = items
            self._emit()

    def remove(self, notification_id: str | None = None) -> None:
        """Physically drop notifications without waiting for the grace delay."""
        if notification_id is None:
            removed = self._items
            self._items = []
        else:
            removed = [item for item in self._items if item.id == notification_id]
            self._items = [item for item in self._items if item.id != notification_id]

        for item in removed:
            self._cancel_timers(item.id)
        if removed:
            self._emit()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for full-list snapshots; returns an unsubscriber."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Cancel every outstanding timer and drop all subscribers."""
        for handle in [*self._auto_dismiss_timers.values(), *self._removal_timers.values()]:
            handle.cancel()
        self._auto_dismiss_timers.clear()
        self._removal_timers.clear()
        self._listeners.clear()

    def pending_timer_count(self) -> int:
        return len(self._auto_dismiss_timers) + len(self._removal_timers)

    def _next_id(self) -> str:
        self._counter += 1
        return str(self._counter)

    def _arm_auto_dismiss(self, item: NotificationItem) -> None:
        delay_ms = resolve_auto_dismiss_delay_ms(item.severity, item.duration_ms)
        if delay_ms is None:
            return
        self._auto_dismiss_timers[item.id] = self.scheduler.call_later(
            delay_ms / 1000,
            lambda: self._auto_dismiss(item.id),
        )

    def _auto_dismiss(self, notification_id: str) -> None:
        self._auto_dismiss_timers.pop(notification_id, None)
        self.dismiss(notification_id)

    def _queue_removal(self, notification_id: str) -> None:
        if notification_id in self._removal_timers:
            return
        self._removal_timers[notification_id] = self.scheduler.call_later(
            self.remove_delay_ms / 1000,
            lambda: self._expire(notification_id),
        )

    def _expire(self, notification_id: str) -> None:
        self._removal_timers.pop(notification_id, None)
        self.remove(notification_id)

    def _cancel_timers(self, notification_id: str) -> None:
        self._cancel(self._auto_dismiss_timers, notification_id)
        self._cancel(self._removal_timers, notification_id)

    @staticmethod
    def _cancel(timers: dict[str, TimerHandle], notification_id: str) -> None:
        handle = timers.pop(notification_id, None)
        if handle is not None:
            handle.cancel()

    def _emit(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as listener_error:
                logger.warning(
                    "Notification listener failed",
                    extra={"listener": repr(listener)},
                    exc_info=listener_error,
                )


def create_store(
    *,
    limit: int = DEFAULT_NOTIFICATION_LIMIT,
    remove_delay_ms: float = DEFAULT_REMOVE_DELAY_MS,
    scheduler: Scheduler | None = None,
) -> NotificationStore:
    """Build an isolated notification store."""
    return NotificationStore(
        limit=limit,
        remove_delay_ms=remove_delay_ms,
        scheduler=scheduler,
    )
