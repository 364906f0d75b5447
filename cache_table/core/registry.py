# registry.py: process-wide registry of named cache tables
"""Central place that hands out named :class:`CacheTable` instances.

* :pyfunc:`cache` – returns the table registered under *name*, creating it
  on first use with the current settings.
* :pyfunc:`drop_table` – flushes, closes and forgets a table.
* :pyfunc:`table_names` – names of all registered tables.

Core table logic never looks tables up here; callers pass table handles
around explicitly once they have them.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List

from cache_table.config.settings import get_settings
from cache_table.core.table import CacheTable

__all__ = [
    "cache",
    "drop_table",
    "table_names",
]

log = logging.getLogger(__name__)

_tables_lock = threading.RLock()
_tables: Dict[str, CacheTable] = {}


def _create_table(name: str) -> CacheTable:
    """Factory: builds a table configured from the global settings."""
    settings = get_settings()
    table: CacheTable = CacheTable(
        name,
        metrics_enabled=settings.metrics_enabled,
        sweep_thread_prefix=settings.sweep_thread_prefix,
    )
    log.info("Cache table %s created", name)
    return table


def cache(name: str) -> CacheTable:
    """Return the table registered under *name* (created on first use)."""
    with _tables_lock:
        table = _tables.get(name)
        if table is None:
            table = _create_table(name)
            _tables[name] = table
        return table


def drop_table(name: str) -> bool:
    """Flush and close the table *name*; returns False if it was unknown."""
    with _tables_lock:
        table = _tables.pop(name, None)
    if table is None:
        return False
    table.flush()
    table.close()
    log.info("Cache table %s dropped", name)
    return True


def table_names() -> List[str]:
    with _tables_lock:
        return sorted(_tables)
