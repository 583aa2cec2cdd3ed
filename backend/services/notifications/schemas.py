"""Notification payload types."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class Severity(str, Enum):
    DEFAULT = "default"
    SUCCESS = "success"
    ERROR = "error"
    DESTRUCTIVE = "destructive"
    WARNING = "warning"


class NotificationItem(BaseModel):
    """A single toast-style message as seen by renderers."""

    model_config = ConfigDict(frozen=True)

    id: str
    severity: Severity = Severity.DEFAULT
    title: str | None = None
    description: str | None = None
    open: bool = True
    # None selects the severity tier; math.inf disables auto-dismiss.
    duration_ms: float | None = None
