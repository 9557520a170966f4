from __future__ import annotations

import json
import logging
import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

import numpy as np

from recordcache.models.collection import Record

from .local_storage import LocalStorage, NullLocalStorage
from .versions import Scope

"""Client-side mirror of a version counter plus its record set.

Two kinds of entries live in LocalStorage:

- marker ``<scope>:<key>:version``: decimal integer, SENTINEL_MARKER when unknown
- records ``<key>:records``: JSON array of flat objects

Unavailable storage looks exactly like an empty cache. A storage OSError
switches the cache to NullLocalStorage for the rest of its life.
"""

__all__ = [
    "SENTINEL_MARKER",
    "LocalCache",
]

logger = logging.getLogger(__name__)

# Lower than any real counter value, so a fresh client always refreshes.
SENTINEL_MARKER = -1


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_records(records: list[Record]) -> str:
    return json.dumps(list(records), ensure_ascii=False, default=_json_default)


def json_safe(records: list[Record]) -> list[Record]:
    """Records as they read back from the cache (dates as ISO strings, plain scalars)."""
    return json.loads(encode_records(records))


def _marker_key(scope: Scope | str, key: str) -> str:
    return f"{Scope.parse(scope).value}:{key}:version"


def _records_key(key: str) -> str:
    return f"{key}:records"


class LocalCache:
    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    @property
    def available(self) -> bool:
        return self.storage.available

    def _degrade(self, op: str, error: OSError) -> None:
        logger.warning("local storage failed during %s -> running without cache: %s", op, error)
        self.storage = NullLocalStorage()

    def _get(self, key: str) -> str | None:
        try:
            return self.storage.get_item(key)
        except UnicodeDecodeError as e:
            logger.warning("cache corruption item=%s: not UTF-8 text: %s", key, e)
            return None
        except OSError as e:
            self._degrade("read", e)
            return None

    def _set(self, key: str, value: str) -> None:
        try:
            self.storage.set_item(key, value)
        except OSError as e:
            self._degrade("write", e)

    def get_marker(self, scope: Scope | str, key: str) -> int:
        mkey = _marker_key(scope, key)
        raw = self._get(mkey)
        if raw is not None:
            try:
                return int(raw.strip())
            except ValueError:
                logger.warning("local marker %s is not an integer: %r", mkey, raw)
        self._set(mkey, str(SENTINEL_MARKER))
        return SENTINEL_MARKER

    def set_marker(self, scope: Scope | str, key: str, value: Any) -> None:
        """Store ``value``; anything that is not an integer is stored as the sentinel."""
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                value = SENTINEL_MARKER
        elif isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            value = SENTINEL_MARKER
        self._set(_marker_key(scope, key), str(int(value)))

    def get_records(self, key: str) -> list[Record] | None:
        """Last persisted record set, or None when missing or unparseable."""
        raw = self._get(_records_key(key))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("cache corruption key=%s: %s", key, e)
            return None
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            logger.warning("cache corruption key=%s: expected a JSON array of objects", key)
            return None
        return data

    def put_records(self, key: str, records: list[Record]) -> None:
        self._set(_records_key(key), encode_records(records))
