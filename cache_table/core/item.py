"""cache_table.core.item
======================
A single cached entry: immutable key, value, creation time and lifespan,
plus access metadata that is refreshed on every successful lookup.

``key``, ``value``, ``created_on`` and ``life_span`` never change after
construction and are read without locking. ``accessed_on`` and
``access_count`` race with :meth:`CacheItem.keep_alive` and are guarded by
the item's own lock.
"""
from __future__ import annotations

import datetime as dt
import threading
import time
from typing import Callable, Generic, Hashable, List, TypeVar, Union

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

LifeSpan = Union[int, float, dt.timedelta]
ExpiryCallback = Callable[[K], None]


def to_seconds(life_span: LifeSpan) -> float:
    """Normalise a lifespan to seconds.

    ``0`` means never expires; a negative lifespan is already expired and is
    evicted by the next sweep.
    """
    if isinstance(life_span, dt.timedelta):
        seconds = life_span.total_seconds()
    else:
        seconds = float(life_span)
    return seconds


class CacheItem(Generic[K, V]):
    """Key/value pair with lifespan and access statistics."""

    __slots__ = (
        "_key",
        "_value",
        "_life_span",
        "_created_on",
        "_accessed_on",
        "_access_count",
        "_about_to_expire",
        "_lock",
    )

    def __init__(self, key: K, life_span: LifeSpan, value: V) -> None:
        now = time.time()
        self._key = key
        self._value = value
        self._life_span = to_seconds(life_span)
        self._created_on = now
        self._accessed_on = now
        self._access_count = 0
        self._about_to_expire: List[ExpiryCallback] = []
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"CacheItem(key={self._key!r}, life_span={self._life_span!r}, access_count={self.access_count})"

    # ------------------------------------------------------------------
    # Access tracking
    # ------------------------------------------------------------------

    def keep_alive(self) -> None:
        """Mark the item as accessed now and bump its access counter."""
        with self._lock:
            self._accessed_on = max(time.time(), self._accessed_on)
            self._access_count += 1

    def expires_in(self, now: float) -> float:
        """Seconds left before the item expires, relative to *now*.

        Non-positive once the item is due. Only meaningful for a nonzero
        lifespan.
        """
        with self._lock:
            accessed_on = self._accessed_on
        return self._life_span - (now - accessed_on)

    # ------------------------------------------------------------------
    # Immutable getters
    # ------------------------------------------------------------------

    @property
    def key(self) -> K:
        return self._key

    @property
    def value(self) -> V:
        return self._value

    @property
    def life_span(self) -> float:
        return self._life_span

    @property
    def created_on(self) -> float:
        return self._created_on

    # ------------------------------------------------------------------
    # Mutable getters
    # ------------------------------------------------------------------

    @property
    def accessed_on(self) -> float:
        with self._lock:
            return self._accessed_on

    @property
    def access_count(self) -> int:
        with self._lock:
            return self._access_count

    # ------------------------------------------------------------------
    # Expiry callbacks
    # ------------------------------------------------------------------

    def set_about_to_expire_callback(self, f: ExpiryCallback) -> None:
        """Replace all expiry callbacks with *f*."""
        with self._lock:
            self._about_to_expire = [f]

    def add_about_to_expire_callback(self, f: ExpiryCallback) -> None:
        with self._lock:
            self._about_to_expire.append(f)

    def remove_about_to_expire_callbacks(self) -> None:
        with self._lock:
            self._about_to_expire = []

    def about_to_expire_callbacks(self) -> List[ExpiryCallback]:
        """Snapshot of the expiry callbacks, in registration order."""
        with self._lock:
            return list(self._about_to_expire)
