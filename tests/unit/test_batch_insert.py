from __future__ import annotations

import pytest

from recordcache.db.batch_insert import BatchInsertError, InsertResult, batch_insert, insert_records


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.rows: list[list] = []


# execute_values is patched inside the module so no database is needed
@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import recordcache.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, page_size=1000):
        cursor.queries.append(sql)
        cursor.rows.extend(rows)

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="staff", columns=["id", "name"], rows=[[1, "Ann"], [2, "Bea"]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert cur.queries == ['INSERT INTO staff ("id","name") VALUES %s']


def test_batch_insert_empty_rows():
    cur = DummyCursor()
    assert batch_insert(cur, table="staff", columns=["id"], rows=[]).inserted_rows == 0
    assert cur.queries == []


def test_driver_errors_become_batch_insert_errors(monkeypatch):
    import recordcache.db.batch_insert as bi

    def failing(cursor, sql, rows, page_size=1000):
        raise RuntimeError("duplicate key value violates unique constraint")

    monkeypatch.setattr(bi, "execute_values", failing)
    with pytest.raises(BatchInsertError, match="duplicate key"):
        batch_insert(DummyCursor(), table="staff", columns=["id"], rows=[[1]])


def test_insert_records_orders_values_by_columns():
    cur = DummyCursor()
    records = [{"name": "Ann", "id": 1}, {"id": 2}]
    res = insert_records(cur, "staff", ["id", "name"], records)
    assert res.inserted_rows == 2
    assert cur.rows == [[1, "Ann"], [2, None]]
