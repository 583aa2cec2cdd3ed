"""Tests for the bounded notification queue."""

from __future__ import annotations

import asyncio
import math

import pytest

from services.notifications import (
    AUTO_DISMISS_DELAYS_MS,
    NotificationItem,
    Severity,
    create_store,
    resolve_auto_dismiss_delay_ms,
)


def test_notify_inserts_open_item_and_returns_handle(scheduler) -> None:
    store = create_store(scheduler=scheduler)

    handle = store.notify(title="Saved", description="All good", severity="success")

    assert store.snapshot() == (
        NotificationItem(
            id=handle.id,
            severity=Severity.SUCCESS,
            title="Saved",
            description="All good",
            open=True,
        ),
    )


def test_ids_are_unique_and_monotonic(scheduler) -> None:
    store = create_store(limit=10, scheduler=scheduler)

    ids = [int(store.notify(title=f"n{i}").id) for i in range(5)]

    assert ids == sorted(ids)
    assert len(set(ids)) == 5


@pytest.mark.parametrize("limit", [1, 2, 3])
def test_visible_list_never_exceeds_limit_and_keeps_newest(scheduler, limit: int) -> None:
    store = create_store(limit=limit, scheduler=scheduler)
    inserted: list[str] = []

    for index in range(limit + 4):
        inserted.append(store.notify(title=f"toast {index}").id)
        assert len(store.snapshot()) <= limit

    newest_first = list(reversed(inserted))[:limit]
    assert [item.id for item in store.snapshot()] == newest_first


def test_evicted_items_release_their_timers(scheduler) -> None:
    store = create_store(limit=1, scheduler=scheduler)

    store.notify(title="first")
    store.notify(title="second")

    assert store.pending_timer_count() == 1
    assert len(scheduler.pending()) == 1


def test_auto_dismiss_delay_is_tiered_by_severity() -> None:
    success = resolve_auto_dismiss_delay_ms(Severity.SUCCESS)
    default = resolve_auto_dismiss_delay_ms(Severity.DEFAULT)
    warning = resolve_auto_dismiss_delay_ms(Severity.WARNING)
    error = resolve_auto_dismiss_delay_ms(Severity.ERROR)
    destructive = resolve_auto_dismiss_delay_ms(Severity.DESTRUCTIVE)

    assert success is not None and default is not None and error is not None
    assert success <= default == warning <= error == destructive
    assert AUTO_DISMISS_DELAYS_MS[Severity.SUCCESS] == 3000


def test_explicit_duration_overrides_tier_and_infinity_disables() -> None:
    assert resolve_auto_dismiss_delay_ms(Severity.ERROR, 1200) == 1200
    assert resolve_auto_dismiss_delay_ms(Severity.ERROR, 0) == 5000
    assert resolve_auto_dismiss_delay_ms(Severity.ERROR, math.inf) is None


def test_scheduled_delays_follow_severity(scheduler) -> None:
    store = create_store(limit=5, scheduler=scheduler)

    store.notify(title="ok", severity=Severity.SUCCESS)
    store.notify(title="boom", severity=Severity.DESTRUCTIVE)

    success_delay, destructive_delay = scheduler.delays
    assert destructive_delay >= success_delay
    assert success_delay == pytest.approx(3.0)


def test_auto_dismiss_closes_item_then_removes_after_grace(scheduler) -> None:
    store = create_store(remove_delay_ms=10_000, scheduler=scheduler)
    handle = store.notify(title="hello", severity=Severity.SUCCESS)

    scheduler.advance(2.9)
    assert store.snapshot()[0].open is True

    scheduler.advance(0.2)
    assert store.snapshot()[0].open is False
    assert store.snapshot()[0].id == handle.id

    scheduler.advance(10)
    assert store.snapshot() == ()
    assert store.pending_timer_count() == 0


def test_infinite_duration_never_auto_dismisses(scheduler) -> None:
    store = create_store(scheduler=scheduler)

    store.notify(title="sticky", duration_ms=math.inf)
    scheduler.advance(3600)

    assert store.visible()[0].title == "sticky"
    assert scheduler.pending() == []


def test_dismiss_cancels_auto_dismiss_timer(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="hi")
    auto_timer = scheduler.pending()[0]

    handle.dismiss()

    assert auto_timer.cancelled is True
    assert store.visible() == ()


def test_dismiss_twice_is_equivalent_to_once(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    snapshots = []
    store.subscribe(snapshots.append)
    handle = store.notify(title="hi")

    store.dismiss(handle.id)
    after_first = (store.snapshot(), len(scheduler.pending()), len(snapshots))
    store.dismiss(handle.id)
    after_second = (store.snapshot(), len(scheduler.pending()), len(snapshots))

    assert after_first == after_second


def test_dismiss_unknown_id_is_silent_noop(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    store.notify(title="hi")
    before = store.snapshot()

    store.dismiss("does-not-exist")
    store.update("does-not-exist", title="nope")
    store.remove("does-not-exist")

    assert store.snapshot() == before


def test_dismiss_without_id_closes_everything(scheduler) -> None:
    store = create_store(limit=3, scheduler=scheduler)
    for index in range(3):
        store.notify(title=f"n{index}")

    store.dismiss()

    assert len(store.snapshot()) == 3
    assert store.visible() == ()


def test_update_changes_payload_only(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="Uploading", severity=Severity.DEFAULT)

    handle.update(title="Uploaded", severity=Severity.SUCCESS)

    item = store.snapshot()[0]
    assert item.title == "Uploaded"
    assert item.severity is Severity.SUCCESS
    assert item.open is True


def test_update_to_infinite_duration_makes_item_sticky(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="Uploading", severity=Severity.SUCCESS)
    auto_timer = scheduler.pending()[0]

    handle.update(duration_ms=math.inf)
    scheduler.advance(3600)

    assert auto_timer.cancelled is True
    assert store.visible()[0].title == "Uploading"
    assert store.snapshot()[0].duration_ms == math.inf
    assert scheduler.pending() == []


def test_update_duration_restarts_auto_dismiss(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="sticky", duration_ms=math.inf)

    scheduler.advance(10)
    handle.update(duration_ms=500)

    scheduler.advance(0.4)
    assert store.visible()[0].title == "sticky"
    scheduler.advance(0.2)
    assert store.visible() == ()
    assert store.pending_timer_count() == 1


def test_update_duration_of_closed_item_does_not_rearm(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="gone")
    handle.dismiss()

    handle.update(duration_ms=200)

    assert store.pending_timer_count() == 1
    assert store.visible() == ()


def test_remove_drops_immediately_and_cancels_timers(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    handle = store.notify(title="bye")

    store.remove(handle.id)

    assert store.snapshot() == ()
    assert scheduler.pending() == []


def test_subscribers_receive_identical_full_snapshots(scheduler) -> None:
    store = create_store(limit=2, scheduler=scheduler)
    first: list[tuple[NotificationItem, ...]] = []
    second: list[tuple[NotificationItem, ...]] = []
    store.subscribe(first.append)
    store.subscribe(second.append)

    store.notify(title="a")
    store.notify(title="b")

    assert first == second
    assert [item.title for item in first[-1]] == ["b", "a"]


def test_unsubscribe_stops_delivery_and_is_idempotent(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    received: list[tuple[NotificationItem, ...]] = []
    unsubscribe = store.subscribe(received.append)

    store.notify(title="a")
    unsubscribe()
    unsubscribe()
    store.notify(title="b")

    assert len(received) == 1


def test_failing_listener_does_not_block_others(scheduler) -> None:
    store = create_store(scheduler=scheduler)
    received: list[tuple[NotificationItem, ...]] = []

    def broken(_snapshot) -> None:
        raise RuntimeError("renderer crashed")

    store.subscribe(broken)
    store.subscribe(received.append)
    store.notify(title="a")

    assert len(received) == 1


def test_stores_are_isolated(scheduler) -> None:
    first = create_store(scheduler=scheduler)
    second = create_store(scheduler=scheduler)

    first.notify(title="only here")

    assert second.snapshot() == ()
    assert first.notify(title="again").id == "2"
    assert second.notify(title="fresh").id == "1"


def test_close_cancels_every_outstanding_timer(scheduler) -> None:
    store = create_store(limit=3, scheduler=scheduler)
    store.notify(title="a")
    handle = store.notify(title="b")
    handle.dismiss()

    store.close()

    assert scheduler.pending() == []
    assert store.pending_timer_count() == 0


def test_invalid_limit_is_rejected() -> None:
    with pytest.raises(ValueError):
        create_store(limit=0)


@pytest.mark.asyncio
async def test_store_runs_on_the_event_loop() -> None:
    store = create_store(remove_delay_ms=20)
    closed = asyncio.Event()

    def on_change(snapshot) -> None:
        if snapshot and not snapshot[0].open:
            closed.set()

    store.subscribe(on_change)
    store.notify(title="quick", duration_ms=10)

    await asyncio.wait_for(closed.wait(), timeout=1)
    await asyncio.sleep(0.05)

    assert store.snapshot() == ()
    store.close()
