import json
import logging

from cache_table.utils.exceptions import (
    CacheError,
    CallbackError,
    KeyNotFoundError,
    KeyNotFoundOrNotLoadableError,
    log_exception,
)


def test_hierarchy():
    assert issubclass(KeyNotFoundError, CacheError)
    assert issubclass(KeyNotFoundOrNotLoadableError, KeyNotFoundError)
    assert issubclass(CacheError, RuntimeError)


def test_to_dict_includes_context_and_cause():
    cause = ValueError("bad")
    err = CallbackError("added_item callback failed", context={"table": "t"}, cause=cause)

    payload = err.to_dict()

    assert payload["error"] == "callback_error"
    assert payload["context"] == {"table": "t"}
    assert payload["cause"] == {"type": "ValueError", "message": "bad"}
    assert json.loads(str(err))["message"] == "added_item callback failed"


def test_str_handles_unserialisable_keys():
    err = KeyNotFoundError("Key not found in cache", context={"key": ("tuple", 1), "obj": object()})

    assert json.loads(str(err))["error"] == "key_not_found"


def test_log_exception(caplog):
    with caplog.at_level(logging.WARNING):
        log_exception(KeyNotFoundError("gone", context={"key": "k"}), level=logging.WARNING)

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert json.loads(record.getMessage())["context"] == {"key": "k"}
