from __future__ import annotations

import logging
import re
from typing import Any, Protocol

"""Durable key-value property stores backing the version counters.

Keys live inside namespaces ("global", "user:<id>"); values are decimal
integer strings. Writes are last-writer-wins, no compare-and-swap.
"""

__all__ = [
    "PropertyStore",
    "MemoryPropertyStore",
    "PgPropertyStore",
]

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class PropertyStore(Protocol):
    def get_property(self, namespace: str, key: str) -> str | None: ...

    def set_property(self, namespace: str, key: str, value: str) -> None: ...


class MemoryPropertyStore:
    """Dict-backed store. Used in mock mode and tests."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], str] = {}

    def get_property(self, namespace: str, key: str) -> str | None:
        return self._data.get((namespace, key))

    def set_property(self, namespace: str, key: str, value: str) -> None:
        self._data[(namespace, key)] = value


class PgPropertyStore:
    """PostgreSQL-backed property store.

    Table layout::

        CREATE TABLE app_properties (
            namespace  TEXT NOT NULL,
            key        TEXT NOT NULL,
            value      TEXT NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            PRIMARY KEY (namespace, key)
        )

    The cursor's transaction is owned by the caller (see
    recordcache.db.connection.db_connection, which commits on exit).
    """

    def __init__(self, cursor: Any, table: str = "app_properties") -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"invalid properties table name: {table!r}")
        self.cursor = cursor
        self.table = table

    def ensure_table(self) -> None:
        self.cursor.execute(
            f"CREATE TABLE IF NOT EXISTS {self.table} ("
            " namespace TEXT NOT NULL,"
            " key TEXT NOT NULL,"
            " value TEXT NOT NULL,"
            " updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),"
            " PRIMARY KEY (namespace, key))"
        )

    def get_property(self, namespace: str, key: str) -> str | None:
        self.cursor.execute(
            f"SELECT value FROM {self.table} WHERE namespace = %s AND key = %s",
            (namespace, key),
        )
        row = self.cursor.fetchone()
        return row[0] if row else None

    def set_property(self, namespace: str, key: str, value: str) -> None:
        self.cursor.execute(
            f"INSERT INTO {self.table} (namespace, key, value) VALUES (%s, %s, %s) "
            "ON CONFLICT (namespace, key) DO UPDATE "
            "SET value = EXCLUDED.value, updated_at = now()",
            (namespace, key, value),
        )
        logger.debug("property set namespace=%s key=%s value=%s", namespace, key, value)
