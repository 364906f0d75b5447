"""cache_table.core.table
=======================
Thread-safe cache table with per-item TTL, access statistics and
lifecycle callbacks.

Public API               Description
-----------------------  ---------------------------------------------
`add()`                  Insert or overwrite an item
`not_found_add()`        Insert only if the key is absent (atomic)
`delete()`               Remove an item, firing about-to-delete hooks
`value()`                Look up an item, using the data loader on miss
`exists()` / `count()`   Side-effect free membership and size
`flush()`                Drop everything and disarm the sweep
`most_accessed()`        Items ranked by access count
`foreach()`              Visit a snapshot of all items

Expiration is driven by a self-adjusting sweep: after every pass the table
arms a one-shot timer for exactly the smallest remaining lifespan, so there
is no fixed polling interval. The table lock is never held while user
callbacks run; callbacks may freely re-enter the table.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Hashable,
    List,
    Optional,
    Protocol,
    Set,
    Tuple,
    TypeVar,
    Union,
    runtime_checkable,
)

from cache_table.core.item import CacheItem, LifeSpan
from cache_table.core.scheduler import ExpirationScheduler, SweepScheduler
from cache_table.utils import metrics
from cache_table.utils.exceptions import (
    CallbackError,
    KeyNotFoundError,
    KeyNotFoundOrNotLoadableError,
    log_exception,
)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DataLoader = Callable[..., Optional[CacheItem]]
SchedulerFactory = Callable[[Callable[[], None], str], SweepScheduler]


###############################################################################
# Observer contracts
###############################################################################

@runtime_checkable
class AddedItemObserver(Protocol):
    """Notified after an item has been inserted."""

    def on_item_added(self, item: CacheItem) -> None: ...


@runtime_checkable
class AboutToDeleteObserver(Protocol):
    """Notified right before an item is removed (delete or expiry)."""

    def on_about_to_delete(self, item: CacheItem) -> None: ...


ItemCallback = Callable[[CacheItem], None]
AddedHook = Union[ItemCallback, AddedItemObserver]
AboutToDeleteHook = Union[ItemCallback, AboutToDeleteObserver]


def _as_added_callback(hook: AddedHook) -> ItemCallback:
    if isinstance(hook, AddedItemObserver):
        return hook.on_item_added
    return hook


def _as_about_to_delete_callback(hook: AboutToDeleteHook) -> ItemCallback:
    if isinstance(hook, AboutToDeleteObserver):
        return hook.on_about_to_delete
    return hook


def _default_scheduler(sweep: Callable[[], None], name: str) -> SweepScheduler:
    return ExpirationScheduler(sweep, name=name)


###############################################################################
# Table
###############################################################################

class CacheTable(Generic[K, V]):
    """Mapping of keys to :class:`CacheItem` with time-based eviction."""

    def __init__(
        self,
        name: str,
        *,
        scheduler_factory: Optional[SchedulerFactory] = None,
        metrics_enabled: bool = True,
        sweep_thread_prefix: str = "cache-sweep",
    ) -> None:
        self._name = name
        self._items: Dict[K, CacheItem[K, V]] = {}
        self._lock = threading.RLock()
        self._cleanup_interval = 0.0
        self._logger = logger
        self._load_data: Optional[DataLoader] = None
        self._added_item: List[ItemCallback] = []
        self._about_to_delete_item: List[ItemCallback] = []
        # items a delete or sweep has claimed and is running callbacks for
        self._deleting: Set[CacheItem[K, V]] = set()
        self._metrics_enabled = metrics_enabled

        factory = scheduler_factory or _default_scheduler
        self._scheduler = factory(self._expiration_check, f"{sweep_thread_prefix}-{name}")

    def __repr__(self) -> str:
        return f"CacheTable(name={self._name!r}, count={self.count()})"

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        return self.exists(key)  # type: ignore[arg-type]

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def cleanup_interval(self) -> float:
        """Seconds the armed sweep timer was set for; ``0`` when idle."""
        with self._lock:
            return self._cleanup_interval

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def exists(self, key: K) -> bool:
        """Membership test; does not refresh the item's access metadata."""
        with self._lock:
            return key in self._items

    def foreach(self, trans: Callable[[K, CacheItem[K, V]], Any]) -> None:
        """Call ``trans(key, item)`` for every item in a consistent snapshot."""
        with self._lock:
            snapshot = list(self._items.items())
        for key, item in snapshot:
            trans(key, item)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_data_loader(self, f: Optional[DataLoader]) -> None:
        """Install ``f(key, *args) -> CacheItem | None`` used on cache miss."""
        with self._lock:
            self._load_data = f

    def set_logger(self, new_logger: logging.Logger) -> None:
        with self._lock:
            self._logger = new_logger

    def set_added_item_callback(self, f: AddedHook) -> None:
        """Replace all on-add callbacks with *f*."""
        with self._lock:
            self._added_item = [_as_added_callback(f)]

    def add_added_item_callback(self, f: AddedHook) -> None:
        with self._lock:
            self._added_item.append(_as_added_callback(f))

    def remove_added_item_callbacks(self) -> None:
        with self._lock:
            self._added_item = []

    def set_about_to_delete_item_callback(self, f: AboutToDeleteHook) -> None:
        """Replace all about-to-delete callbacks with *f*."""
        with self._lock:
            self._about_to_delete_item = [_as_about_to_delete_callback(f)]

    def add_about_to_delete_item_callback(self, f: AboutToDeleteHook) -> None:
        with self._lock:
            self._about_to_delete_item.append(_as_about_to_delete_callback(f))

    def remove_about_to_delete_item_callbacks(self) -> None:
        with self._lock:
            self._about_to_delete_item = []

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, key: K, life_span: LifeSpan, value: V) -> CacheItem[K, V]:
        """Insert *value* under *key*, overwriting any existing item."""
        item = CacheItem(key, life_span, value)
        with self._lock:
            expire_after, callbacks = self._add_locked(item)
        self._after_add(item, expire_after, callbacks)
        return item

    def not_found_add(self, key: K, life_span: LifeSpan, value: V) -> bool:
        """Insert only if *key* is absent; returns whether it was inserted."""
        with self._lock:
            if key in self._items:
                return False
            item = CacheItem(key, life_span, value)
            expire_after, callbacks = self._add_locked(item)
        self._after_add(item, expire_after, callbacks)
        return True

    def delete(self, key: K) -> CacheItem[K, V]:
        """Remove and return the item stored under *key*.

        The table's about-to-delete callbacks run first, then the item's own
        expiry callbacks, and only then is the item dropped from the map.
        An item already being deleted or expired by another thread counts
        as absent.
        """
        with self._lock:
            item = self._items.get(key)
            if item is None or item in self._deleting:
                raise KeyNotFoundError(
                    "Key not found in cache",
                    context={"table": self._name, "key": key},
                )
            self._deleting.add(item)
            callbacks = list(self._about_to_delete_item)

        try:
            self._notify_about_to_delete(item, callbacks)
        finally:
            with self._lock:
                removed = self._remove_locked(item)
                self._deleting.discard(item)
        if removed:
            self._record(metrics.MET_DELETED)
        return item

    def flush(self) -> None:
        """Drop every item and disarm the sweep; no callbacks fire."""
        with self._lock:
            self._logger.debug("Flushing table %s", self._name)
            self._items = {}
            self._cleanup_interval = 0.0
            self._scheduler.cancel()
            self._record_size()

    def close(self) -> None:
        """Stop the sweep timer and its worker thread."""
        with self._lock:
            self._cleanup_interval = 0.0
        self._scheduler.close()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def value(self, key: K, *args: Any) -> CacheItem[K, V]:
        """Return the item for *key*, refreshing its access metadata.

        On a miss the data loader (if any) is called as ``loader(key, *args)``;
        an item it returns is inserted with its own lifespan and returned. An
        item carrying a different key is re-keyed to *key*, keeping its
        lifespan, value and expiry callbacks.
        """
        with self._lock:
            item = self._items.get(key)
            load_data = self._load_data

        if item is not None:
            item.keep_alive()
            self._record(metrics.MET_HITS)
            return item

        self._record(metrics.MET_MISSES)
        if load_data is None:
            raise KeyNotFoundError(
                "Key not found in cache",
                context={"table": self._name, "key": key},
            )

        loaded = load_data(key, *args)
        if loaded is None:
            raise KeyNotFoundOrNotLoadableError(
                "Key not found and could not be loaded",
                context={"table": self._name, "key": key},
            )
        if loaded.key != key:
            rekeyed = CacheItem(key, loaded.life_span, loaded.value)
            for expiry in loaded.about_to_expire_callbacks():
                rekeyed.add_about_to_expire_callback(expiry)
            loaded = rekeyed

        with self._lock:
            expire_after, callbacks = self._add_locked(loaded)
        self._after_add(loaded, expire_after, callbacks)
        self._record(metrics.MET_LOADS)
        return loaded

    def most_accessed(self, count: int) -> List[CacheItem[K, V]]:
        """Up to *count* items ordered by descending access count."""
        if count <= 0:
            return []
        with self._lock:
            ranked = [(item.access_count, item) for item in self._items.values()]
        ranked.sort(key=lambda pair: pair[0], reverse=True)
        return [item for _, item in ranked[:count]]

    # ------------------------------------------------------------------
    # Expiration
    # ------------------------------------------------------------------

    def _expiration_check(self) -> None:
        # Runs on the scheduler's single worker, never concurrently with itself.
        started = time.perf_counter()
        with self._lock:
            self._scheduler.cancel()
            if self._cleanup_interval > 0:
                self._logger.debug(
                    "Expiration check triggered after %.3fs for table %s", self._cleanup_interval, self._name
                )
            else:
                self._logger.debug("Expiration check installed for table %s", self._name)

            now = time.time()
            expired = [
                item
                for item in self._items.values()
                if item.life_span and item not in self._deleting
                and item.expires_in(now) <= 0
            ]
            self._deleting.update(expired)
            callbacks = list(self._about_to_delete_item)

        try:
            for item in expired:
                with self._lock:
                    # flushed or replaced since it was picked
                    still_held = self._items.get(item.key) is item
                if still_held:
                    self._notify_about_to_delete(item, callbacks)
        finally:
            with self._lock:
                removed = sum(1 for item in expired if self._remove_locked(item))
                self._deleting.difference_update(expired)

        with self._lock:
            now = time.time()
            smallest = 0.0
            for item in self._items.values():
                if not item.life_span:
                    continue
                remaining = item.expires_in(now)
                if remaining <= 0:
                    # expired while callbacks ran; pick it up on the next pass
                    remaining = 1e-3
                if smallest == 0 or remaining < smallest:
                    smallest = remaining

            self._cleanup_interval = smallest
            if smallest > 0:
                self._scheduler.arm(smallest)

        if removed:
            self._record(metrics.MET_EXPIRED, removed)
        if self._metrics_enabled:
            metrics.LAT_SWEEP.labels(table=self._name).observe(time.perf_counter() - started)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _add_locked(self, item: CacheItem[K, V]) -> Tuple[float, List[ItemCallback]]:
        # Careful: caller must hold self._lock. Returns the bookkeeping needed
        # to finish the insert once the lock is released.
        self._logger.debug(
            "Adding item with key %r and lifespan of %ss to table %s", item.key, item.life_span, self._name
        )
        self._items[item.key] = item
        self._record_size()
        return self._cleanup_interval, list(self._added_item)

    def _after_add(self, item: CacheItem[K, V], expire_after: float, callbacks: List[ItemCallback]) -> None:
        for callback in callbacks:
            self._run_callback(callback, item, hook="added_item")

        # No sweep armed yet, or this item expires sooner than the armed one.
        if item.life_span != 0 and (expire_after == 0 or item.life_span < expire_after):
            self._scheduler.trigger()

    def _remove_locked(self, item: CacheItem[K, V]) -> bool:
        # Careful: caller must hold self._lock. A concurrent re-add under the
        # same key is a different item and is left alone.
        if self._items.get(item.key) is not item:
            return False
        self._logger.debug(
            "Deleting item with key %r created on %s and hit %d times from table %s",
            item.key,
            item.created_on,
            item.access_count,
            self._name,
        )
        del self._items[item.key]
        self._record_size()
        return True

    def _notify_about_to_delete(self, item: CacheItem[K, V], callbacks: List[ItemCallback]) -> None:
        for callback in callbacks:
            self._run_callback(callback, item, hook="about_to_delete_item")
        for expiry in item.about_to_expire_callbacks():
            self._run_callback(expiry, item.key, hook="about_to_expire")

    def _run_callback(self, callback: Callable[[Any], Any], arg: Any, *, hook: str) -> None:
        try:
            callback(arg)
        except Exception as exc:
            self._record(metrics.MET_CALLBACK_ERRORS)
            log_exception(
                CallbackError(
                    f"{hook} callback failed",
                    context={"table": self._name, "hook": hook, "callback": repr(callback)},
                    cause=exc,
                ),
                logger=self._logger,
            )

    def _record(self, counter: Any, amount: float = 1) -> None:
        if self._metrics_enabled:
            counter.labels(table=self._name).inc(amount)

    def _record_size(self) -> None:
        if self._metrics_enabled:
            metrics.GAUGE_ITEMS.labels(table=self._name).set(len(self._items))
