"""Timer scheduling primitives for the in-process UI services."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


@runtime_checkable
class Scheduler(Protocol):
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Schedule callbacks on the running asyncio event loop."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(delay_seconds, 0.0), callback)


class RecurringTimer:
    """Invoke a callback once per interval until cancelled."""

    def __init__(
        self,
        scheduler: Scheduler,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.scheduler = scheduler
        self.interval_seconds = interval_seconds
        self.callback = callback
        self._handle: TimerHandle | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "RecurringTimer":
        if not self._cancelled and self._handle is None:
            self._schedule()
        return self

    def cancel(self) -> None:
        self._cancelled = True
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

    def _schedule(self) -> None:
        self._handle = self.scheduler.call_later(self.interval_seconds, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if self._cancelled:
            return
        try:
            self.callback()
        except Exception:
            logger.exception("Recurring timer callback failed")
        # The callback may have cancelled us.
        if not self._cancelled:
            self._schedule()
