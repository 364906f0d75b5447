import datetime as dt

import pytest

from cache_table.core.item import CacheItem, to_seconds


def test_new_item_has_no_accesses(clock):
    item = CacheItem("k", 5, "v")

    assert item.key == "k"
    assert item.value == "v"
    assert item.life_span == 5.0
    assert item.access_count == 0
    assert item.created_on == item.accessed_on == clock.now


def test_keep_alive_updates_metadata(clock):
    item = CacheItem("k", 5, "v")

    clock.advance(2)
    item.keep_alive()
    item.keep_alive()

    assert item.access_count == 2
    assert item.accessed_on == clock.now
    assert item.accessed_on >= item.created_on


def test_accessed_on_never_moves_backwards(clock):
    item = CacheItem("k", 5, "v")
    clock.advance(3)
    item.keep_alive()
    seen = item.accessed_on

    clock.advance(-10)  # wall clock stepped back
    item.keep_alive()

    assert item.accessed_on == seen
    assert item.access_count == 2


def test_expires_in_counts_down_from_last_access(clock):
    item = CacheItem("k", 5, "v")

    assert item.expires_in(clock.now + 1) == pytest.approx(4.0)
    clock.advance(4)
    item.keep_alive()
    assert item.expires_in(clock.now + 1) == pytest.approx(4.0)
    assert item.expires_in(clock.now + 6) < 0


def test_timedelta_lifespan():
    assert CacheItem("k", dt.timedelta(milliseconds=1500), None).life_span == 1.5
    assert to_seconds(0) == 0.0


def test_negative_lifespan_is_already_expired():
    item = CacheItem("k", -1, "v")

    assert item.life_span == -1.0
    assert item.expires_in(item.accessed_on) < 0


def test_expiry_callback_registration():
    item = CacheItem("k", 0, "v")
    a = lambda key: None
    b = lambda key: None

    item.add_about_to_expire_callback(a)
    item.add_about_to_expire_callback(b)
    assert item.about_to_expire_callbacks() == [a, b]

    item.set_about_to_expire_callback(b)
    assert item.about_to_expire_callbacks() == [b]

    item.remove_about_to_expire_callbacks()
    assert item.about_to_expire_callbacks() == []
