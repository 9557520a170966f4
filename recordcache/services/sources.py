from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from recordcache.models.collection import Record

"""Authoritative record sources.

A source is queried only on cache miss. ``load`` is a coroutine that either
returns a SourceSnapshot (items + field names) or raises SourceFetchError;
there is no third outcome, and callers must not write to the cache on error.
"""

__all__ = [
    "SourceFetchError",
    "SourceSnapshot",
    "RecordSource",
    "CallableSource",
    "PgTableSource",
    "snapshot_to_records",
]

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class SourceFetchError(Exception):
    """The authoritative source could not be loaded."""


@dataclass(frozen=True)
class SourceSnapshot:
    items: list[Any]
    fields: list[str] = field(default_factory=list)


class RecordSource(Protocol):
    async def load(self) -> SourceSnapshot: ...


def _item_value(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def snapshot_to_records(snapshot: SourceSnapshot) -> list[Record]:
    """Flatten snapshot items into records keyed by the snapshot's fields.

    Tuples/lists are matched to ``fields`` by position. Mappings without a
    field list are copied as they are.
    """
    records: list[Record] = []
    for item in snapshot.items:
        if not snapshot.fields:
            if not isinstance(item, Mapping):
                raise SourceFetchError(f"cannot flatten {type(item).__name__} without field names")
            records.append(dict(item))
        elif isinstance(item, Sequence) and not isinstance(item, (str, bytes)):
            records.append(dict(zip(snapshot.fields, item, strict=False)))
        else:
            records.append({name: _item_value(item, name) for name in snapshot.fields})
    return records


class CallableSource:
    """Adapts a blocking callable into a RecordSource.

    The callable returns a SourceSnapshot or an ``(items, fields)`` tuple and
    runs in a worker thread. Any exception becomes SourceFetchError.
    """

    def __init__(self, func: Callable[[], SourceSnapshot | tuple[list[Any], list[str]]]) -> None:
        self.func = func

    async def load(self) -> SourceSnapshot:
        try:
            result = await asyncio.to_thread(self.func)
        except SourceFetchError:
            raise
        except Exception as e:
            raise SourceFetchError(str(e)) from e
        if isinstance(result, SourceSnapshot):
            return result
        items, fields = result
        return SourceSnapshot(items=list(items), fields=list(fields))


class PgTableSource:
    """Loads a whole table (selected columns) through a psycopg2 cursor."""

    def __init__(self, cursor: Any, table: str, fields: list[str]) -> None:
        if not _IDENTIFIER.match(table):
            raise ValueError(f"invalid table name: {table!r}")
        if not fields:
            raise ValueError("at least one field is required")
        self.cursor = cursor
        self.table = table
        self.fields = list(fields)

    def _select(self) -> SourceSnapshot:
        cols_sql = ",".join(f'"{c}"' for c in self.fields)
        self.cursor.execute(f"SELECT {cols_sql} FROM {self.table}")
        rows = self.cursor.fetchall()
        logger.debug("source table=%s rows=%d", self.table, len(rows))
        return SourceSnapshot(items=[tuple(r) for r in rows], fields=self.fields)

    async def load(self) -> SourceSnapshot:
        try:
            return await asyncio.to_thread(self._select)
        except Exception as e:
            raise SourceFetchError(f"failed loading {self.table}: {e}") from e
