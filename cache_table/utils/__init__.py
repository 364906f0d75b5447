# cache_table/utils/__init__.py
"""Utilities module for the cache table package."""

from __future__ import annotations

__all__ = [
    "CacheError",
    "KeyNotFoundError",
    "KeyNotFoundOrNotLoadableError",
    "CallbackError",
    "ConfigurationError",
    "log_exception",
    "get_prometheus_metrics",
    "prometheus_counter",
]

def __getattr__(name: str):
    if name in (
        "CacheError",
        "KeyNotFoundError",
        "KeyNotFoundOrNotLoadableError",
        "CallbackError",
        "ConfigurationError",
        "log_exception",
    ):
        from cache_table.utils.exceptions import (
            CacheError,
            KeyNotFoundError,
            KeyNotFoundOrNotLoadableError,
            CallbackError,
            ConfigurationError,
            log_exception,
        )
        return locals()[name]
    elif name in ("get_prometheus_metrics", "prometheus_counter"):
        from cache_table.utils.metrics import get_prometheus_metrics, prometheus_counter
        return locals()[name]
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
