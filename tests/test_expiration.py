import threading
import time

import pytest

from cache_table.core.registry import cache, drop_table
from cache_table.core.table import CacheTable


def _wait_until(predicate, timeout=5.0, interval=0.02):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


# ---------------------------------------------------------------------------
# deterministic sweeps (fake clock, manual scheduler)
# ---------------------------------------------------------------------------

def test_zero_lifespan_never_triggers_sweep(table, scheduler, clock):
    table.add("a", 0, "x")

    assert scheduler.triggers == 0
    clock.advance(10_000)
    scheduler.run_pending()

    assert table.exists("a")
    assert table.cleanup_interval == 0
    assert scheduler.armed == []


def test_sweep_arms_timer_for_smallest_remaining_lifespan(table, scheduler, clock):
    table.add("slow", 10, "x")
    assert scheduler.triggers == 1
    scheduler.run_pending()
    assert scheduler.armed == [pytest.approx(10)]

    clock.advance(2)
    table.add("fast", 3, "x")  # more imminent than the armed 10s
    assert scheduler.triggers == 2
    scheduler.run_pending()

    assert table.cleanup_interval == pytest.approx(3)
    assert scheduler.armed[-1] == pytest.approx(3)


def test_longer_lifespan_does_not_retrigger(table, scheduler):
    table.add("fast", 3, "x")
    scheduler.run_pending()

    table.add("slow", 10, "x")

    assert scheduler.triggers == 1


def test_expired_item_removed_and_callbacks_fire_once(table, scheduler, clock):
    deleted, expired = [], []
    table.add_about_to_delete_item_callback(lambda item: deleted.append(item.key))
    table.add("keep", 0, "x")
    item = table.add("b", 1, "x")
    item.add_about_to_expire_callback(expired.append)
    scheduler.run_pending()

    clock.advance(1.5)
    scheduler.run_pending()
    scheduler.run_pending()

    assert not table.exists("b")
    assert table.exists("keep")
    assert deleted == ["b"]
    assert expired == ["b"]
    assert table.cleanup_interval == 0


def test_access_postpones_expiry(table, scheduler, clock):
    table.add("b", 2, "x")
    scheduler.run_pending()

    clock.advance(1.5)
    table.value("b")
    clock.advance(1.0)
    scheduler.run_pending()

    assert table.exists("b")
    assert table.cleanup_interval == pytest.approx(1.0)

    clock.advance(1.0)
    scheduler.run_pending()
    assert not table.exists("b")


def test_item_exactly_at_lifespan_is_expired(table, scheduler, clock):
    table.add("b", 2, "x")
    clock.advance(2)
    scheduler.run_pending()

    assert not table.exists("b")


def test_sweep_leaves_concurrently_readded_item(table, scheduler, clock):
    table.add("b", 1, "x")
    clock.advance(1)

    def readd(item):
        if item.value == "x":
            table.add("b", 0, "fresh")

    table.add_about_to_delete_item_callback(readd)
    scheduler.run_pending()

    assert table.exists("b")
    assert table.value("b").value == "fresh"


def test_sweep_survives_failing_callback(table, scheduler, clock):
    def boom(item):
        raise ValueError("nope")

    table.add_about_to_delete_item_callback(boom)
    table.add("b", 1, "x")
    table.add("c", 5, "x")
    clock.advance(1)
    scheduler.run_pending()

    assert not table.exists("b")
    assert table.cleanup_interval == pytest.approx(4)


def test_negative_lifespan_is_evicted_by_next_sweep(table, scheduler):
    fired = []
    table.add_about_to_delete_item_callback(lambda item: fired.append(item.key))

    table.add("n", -1, "x")
    assert scheduler.triggers == 1
    scheduler.run_pending()

    assert not table.exists("n")
    assert fired == ["n"]
    assert table.cleanup_interval == 0
    assert scheduler.armed == []


def test_sweep_skips_item_being_deleted(table, scheduler, clock):
    entered, release = threading.Event(), threading.Event()
    deleted, expired = [], []

    def slow(item):
        deleted.append(item.key)
        entered.set()
        release.wait(5)

    table.add_about_to_delete_item_callback(slow)
    item = table.add("b", 1, "x")
    item.add_about_to_expire_callback(expired.append)
    scheduler.run_pending()

    t = threading.Thread(target=table.delete, args=("b",))
    t.start()
    assert entered.wait(5)
    try:
        clock.advance(2)
        scheduler.run_pending()
    finally:
        release.set()
        t.join()

    assert deleted == ["b"]
    assert expired == ["b"]
    assert not table.exists("b")


def test_flush_during_sweep_callbacks_silences_remaining_items(table, scheduler, clock):
    deleted, expired = [], []

    def on_delete(item):
        deleted.append(item.key)
        if item.key == "b":
            table.flush()

    table.add_about_to_delete_item_callback(on_delete)
    for key in ("b", "c"):
        table.add(key, 1, "x").add_about_to_expire_callback(expired.append)
    scheduler.run_pending()

    clock.advance(2)
    scheduler.run_pending()

    assert deleted == ["b"]
    assert expired == ["b"]
    assert table.count() == 0
    assert table.cleanup_interval == 0


def test_close_stops_scheduler(table, scheduler):
    table.close()

    assert scheduler.closed
    assert table.cleanup_interval == 0


# ---------------------------------------------------------------------------
# real timers
# ---------------------------------------------------------------------------

def test_registry_returns_same_table():
    try:
        t = cache("registry-same")
        assert cache("registry-same") is t
    finally:
        assert drop_table("registry-same") is True
    assert drop_table("registry-same") is False


def test_mixed_lifespans_expire_in_real_time():
    table = cache("realtime-mixed")
    try:
        table.add("a", 0, "x")
        table.add("b", 1, "x")

        a = table.value("a")
        b = table.value("b")
        assert a.value == b.value == "x"
        assert a.access_count == b.access_count == 1
        assert b.life_span == 1

        time.sleep(1.1)
        assert _wait_until(lambda: not table.exists("b"))
        assert table.exists("a")
        assert _wait_until(lambda: table.cleanup_interval == 0)
    finally:
        drop_table("realtime-mixed")


def test_timer_rearms_for_successive_items():
    fired = []
    table = CacheTable("realtime-chain", metrics_enabled=False)
    table.add_about_to_delete_item_callback(lambda item: fired.append(item.key))
    try:
        table.add("first", 0.2, 1)
        table.add("second", 0.6, 2)

        assert _wait_until(lambda: fired == ["first"], timeout=2)
        assert table.exists("second")
        assert _wait_until(lambda: fired == ["first", "second"], timeout=3)
        assert table.count() == 0
    finally:
        table.close()


def test_flush_cancels_real_timer():
    fired = []
    table = CacheTable("realtime-flush", metrics_enabled=False)
    table.add_about_to_delete_item_callback(lambda item: fired.append(item.key))
    try:
        table.add("a", 0.3, 1)
        assert _wait_until(lambda: table.cleanup_interval > 0, timeout=2)

        table.flush()
        time.sleep(0.5)

        assert fired == []
        assert table.cleanup_interval == 0
    finally:
        table.close()
