"""cache-table

An in-process key/value cache with per-item time-to-live, access
statistics and lifecycle callbacks.

This package provides:
- Thread-safe cache tables with a self-adjusting expiration sweep
- Lazy population on miss through a pluggable data loader
- Add / about-to-delete / about-to-expire hooks
- A process-wide registry of named tables
- Prometheus metrics and pydantic-based settings
"""

from __future__ import annotations

import logging
from typing import Any, Dict

__version__ = "0.1.0"
__author__ = "Cache Table Team"
__description__ = "In-process key/value cache with per-item TTL and lifecycle callbacks"

# Configure default logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API exports
__all__ = [
    "__version__",
    "CacheItem",
    "CacheTable",
    "CacheSettings",
    "KeyNotFoundError",
    "KeyNotFoundOrNotLoadableError",
    "cache",
    "get_settings",
]

# Lazy imports to avoid heavy dependencies during package import
def __getattr__(name: str) -> Any:
    if name == "CacheItem":
        from cache_table.core.item import CacheItem
        return CacheItem
    elif name == "CacheTable":
        from cache_table.core.table import CacheTable
        return CacheTable
    elif name == "cache":
        from cache_table.core.registry import cache
        return cache
    elif name in ("KeyNotFoundError", "KeyNotFoundOrNotLoadableError"):
        from cache_table.utils.exceptions import KeyNotFoundError, KeyNotFoundOrNotLoadableError
        return locals()[name]
    elif name in ("CacheSettings", "get_settings"):
        from cache_table.config.settings import CacheSettings, get_settings
        return locals()[name]
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def get_version_info() -> Dict[str, Any]:
    """Get detailed version information."""
    return {
        "version": __version__,
        "author": __author__,
        "description": __description__,
    }
