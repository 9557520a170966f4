from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

from recordcache.models.collection import Record

"""Batched INSERT of imported records with psycopg2.extras.execute_values.

Only columns named by the collection are inserted; the caller owns the
transaction.
"""

logger = logging.getLogger(__name__)


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    elapsed_seconds: float = 0.0


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
) -> InsertResult:
    """Perform a batched INSERT.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated by the config schema)
    columns: column names, in the order of each row's values
    rows: row value sequences
    page_size: execute_values page size
    """
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"

    start = time.perf_counter()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    elapsed = time.perf_counter() - start
    logger.debug("batch_insert table=%s rows=%d elapsed=%.3fs", table, len(rows_list), elapsed)
    return InsertResult(inserted_rows=len(rows_list), elapsed_seconds=elapsed)


def insert_records(
    cursor: Any, table: str, columns: Sequence[str], records: Iterable[Record], page_size: int = 1000
) -> InsertResult:
    """Insert record dicts, taking ``columns`` from each record in order."""
    rows = [[r.get(c) for c in columns] for r in records]
    return batch_insert(cursor, table, columns, rows, page_size=page_size)
