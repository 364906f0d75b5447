"""Configuration module for the cache table package."""

from __future__ import annotations

__all__ = [
    "CacheSettings",
    "get_settings",
    "configure_logging",
]

# Lazy imports to avoid pulling pydantic in on plain table use
def __getattr__(name: str):
    if name in ("CacheSettings", "get_settings", "configure_logging"):
        from cache_table.config.settings import CacheSettings, get_settings, configure_logging
        return locals()[name]
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
