"""Tests for timer scheduling primitives."""

import asyncio

import pytest

from services.timers import LoopScheduler, RecurringTimer


def test_recurring_timer_fires_once_per_interval(scheduler) -> None:
    ticks: list[float] = []
    RecurringTimer(scheduler, 30, lambda: ticks.append(scheduler.now)).start()

    scheduler.advance(95)

    assert ticks == [30, 60, 90]


def test_recurring_timer_cancel_is_idempotent(scheduler) -> None:
    ticks: list[float] = []
    timer = RecurringTimer(scheduler, 10, lambda: ticks.append(scheduler.now)).start()

    scheduler.advance(10)
    timer.cancel()
    timer.cancel()
    scheduler.advance(100)

    assert ticks == [10]
    assert timer.cancelled is True
    assert scheduler.pending() == []


def test_recurring_timer_can_cancel_itself_from_callback(scheduler) -> None:
    ticks: list[float] = []
    timer: RecurringTimer

    def on_tick() -> None:
        ticks.append(scheduler.now)
        if len(ticks) == 2:
            timer.cancel()

    timer = RecurringTimer(scheduler, 5, on_tick).start()
    scheduler.advance(60)

    assert ticks == [5, 10]


def test_recurring_timer_keeps_running_after_callback_error(scheduler) -> None:
    ticks: list[float] = []

    def on_tick() -> None:
        ticks.append(scheduler.now)
        raise RuntimeError("tick failed")

    RecurringTimer(scheduler, 1, on_tick).start()
    scheduler.advance(3)

    assert ticks == [1, 2, 3]


def test_recurring_timer_rejects_non_positive_interval(scheduler) -> None:
    with pytest.raises(ValueError):
        RecurringTimer(scheduler, 0, lambda: None)


@pytest.mark.asyncio
async def test_loop_scheduler_cancel_after_fire_is_noop() -> None:
    fired = asyncio.Event()
    handle = LoopScheduler().call_later(0.01, fired.set)

    await asyncio.wait_for(fired.wait(), timeout=1)
    handle.cancel()
    handle.cancel()

    assert fired.is_set()
