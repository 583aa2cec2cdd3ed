"""Notification domain services."""

from .queue import (
    AUTO_DISMISS_DELAYS_MS,
    DEFAULT_NOTIFICATION_LIMIT,
    DEFAULT_REMOVE_DELAY_MS,
    NotificationHandle,
    NotificationStore,
    create_store,
    resolve_auto_dismiss_delay_ms,
)
from .schemas import NotificationItem, Severity

__all__ = [
    "AUTO_DISMISS_DELAYS_MS",
    "DEFAULT_NOTIFICATION_LIMIT",
    "DEFAULT_REMOVE_DELAY_MS",
    "NotificationHandle",
    "NotificationItem",
    "NotificationStore",
    "Severity",
    "create_store",
    "resolve_auto_dismiss_delay_ms",
]
