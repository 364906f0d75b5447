# cache_table/utils/exceptions.py
"""Exception hierarchy for the cache table package.

Lookups that miss are the only failures a caller sees from a table:

- ``KeyNotFoundError`` – the key is absent and no data loader is set
- ``KeyNotFoundOrNotLoadableError`` – the key is absent and the loader
  declined to produce an item

Both carry the offending key in their ``context`` and serialise to JSON so
they can be logged in a structured way. ``CallbackError`` never reaches a
caller: the table wraps failing user callbacks in it, logs it and carries on.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from typing import Any, Dict, Optional

__all__ = [
    "CacheError",
    "KeyNotFoundError",
    "KeyNotFoundOrNotLoadableError",
    "CallbackError",
    "ConfigurationError",
    "log_exception",
]

log = logging.getLogger(__name__)


# =============================================================================
# Base Exception Class
# =============================================================================

class CacheError(RuntimeError):
    """Base exception class for all cache table errors.

    Attributes:
        message: Human-readable error description
        context: Additional context information as key-value pairs
        code: Error code for programmatic handling
        ts_utc: UTC timestamp when the error occurred

    Example:
        try:
            item = table.value("user:42")
        except KeyNotFoundError as e:
            log.info("miss for %s", e.context["key"])
    """

    default_code: str = "cache_error"

    def __init__(
        self,
        message: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.code = self.default_code
        self.ts_utc = dt.datetime.now(dt.timezone.utc)

        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to a JSON-serializable dictionary."""
        payload: Dict[str, Any] = {
            "error": self.code,
            "message": self.message,
            "timestamp": self.ts_utc.isoformat(),
        }

        if self.context:
            payload["context"] = self.context

        if self.__cause__ is not None:
            payload["cause"] = {
                "type": type(self.__cause__).__name__,
                "message": str(self.__cause__),
            }

        return payload

    def __str__(self) -> str:
        """Return compact JSON representation of the exception."""
        return json.dumps(self.to_dict(), ensure_ascii=False, separators=(",", ":"), default=repr)


# =============================================================================
# Lookup Errors
# =============================================================================

class KeyNotFoundError(CacheError):
    """Raised when a lookup or delete targets a key that is not in the table.

    Example:
        if key not in self._items:
            raise KeyNotFoundError(
                "Key not found in cache",
                context={"table": self.name, "key": key},
            )
    """

    default_code = "key_not_found"


class KeyNotFoundOrNotLoadableError(KeyNotFoundError):
    """Raised on a miss when the configured data loader returned nothing."""

    default_code = "key_not_found_or_not_loadable"


# =============================================================================
# Callback and Configuration Errors
# =============================================================================

class CallbackError(CacheError):
    """Wraps an exception raised by a user-registered callback.

    The table logs it with :func:`log_exception` and keeps going; it is
    never propagated to the caller of the operation that fired the callback.
    """

    default_code = "callback_error"


class ConfigurationError(CacheError):
    """Raised when settings cannot be loaded or are inconsistent."""

    default_code = "configuration_error"


# =============================================================================
# Helper Functions
# =============================================================================

def log_exception(
    exception: CacheError,
    *,
    level: int = logging.ERROR,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log a CacheError with structured JSON payload.

    Example:
        try:
            callback(item)
        except Exception as e:
            log_exception(CallbackError("add callback failed", cause=e))
    """
    if logger is None:
        logger = log

    logger.log(level, "%s", json.dumps(exception.to_dict(), ensure_ascii=False, default=repr))
