# cache_table/core/__init__.py
"""Core module for the cache table package."""

from __future__ import annotations

__all__ = [
    "CacheItem",
    "CacheTable",
    "AddedItemObserver",
    "AboutToDeleteObserver",
    "ExpirationScheduler",
    "cache",
    "drop_table",
    "table_names",
]

def __getattr__(name: str):
    if name == "CacheItem":
        from cache_table.core.item import CacheItem
        return CacheItem
    elif name in ("CacheTable", "AddedItemObserver", "AboutToDeleteObserver"):
        from cache_table.core.table import CacheTable, AddedItemObserver, AboutToDeleteObserver
        return locals()[name]
    elif name == "ExpirationScheduler":
        from cache_table.core.scheduler import ExpirationScheduler
        return ExpirationScheduler
    elif name in ("cache", "drop_table", "table_names"):
        from cache_table.core.registry import cache, drop_table, table_names
        return locals()[name]
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
