from __future__ import annotations

import asyncio
import uuid
from datetime import date, time
from pathlib import Path

import pytest

from recordcache.services.coordinator import CacheCoordinator, FetchOutcome
from recordcache.services.record_filter import RecordFilter
from recordcache.services.sources import CallableSource, SourceFetchError, SourceSnapshot
from recordcache.store.local_cache import SENTINEL_MARKER, LocalCache
from recordcache.store.local_storage import FileLocalStorage, MemoryLocalStorage, NullLocalStorage
from recordcache.store.versions import Scope, VersionStore

STAFF = [
    {"id": 1, "name": "Ann Ito"},
    {"id": 2, "name": "Bea Jones"},
    {"id": 3, "name": "Carl Kim"},
]


class FakeSource:
    def __init__(self, items=None, fields=None, error: Exception | None = None) -> None:
        self.items = list(STAFF if items is None else items)
        self.fields = fields or []
        self.error = error
        self.calls = 0

    async def load(self) -> SourceSnapshot:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return SourceSnapshot(items=list(self.items), fields=list(self.fields))


@pytest.fixture()
def coordinator(versions: VersionStore, local_cache: LocalCache) -> CacheCoordinator:
    return CacheCoordinator(versions, local_cache)


def _fetch(coordinator: CacheCoordinator, source, record_filter=None, scope=Scope.GLOBAL, key="Staff"):
    return asyncio.run(coordinator.fetch(scope, key, source, record_filter))


def test_first_fetch_refreshes_and_sets_marker(coordinator: CacheCoordinator, local_cache: LocalCache):
    source = FakeSource()
    records = _fetch(coordinator, source)

    assert records == STAFF
    assert source.calls == 1
    assert coordinator.last_outcome == FetchOutcome.STALE
    assert local_cache.get_marker("global", "Staff") == 1
    assert local_cache.get_records("Staff") == STAFF


def test_second_fetch_is_served_locally(coordinator: CacheCoordinator):
    source = FakeSource()
    _fetch(coordinator, source)
    records = _fetch(coordinator, source)

    assert records == STAFF
    assert source.calls == 1
    assert coordinator.last_outcome == FetchOutcome.HIT


def test_mark_dirty_forces_refresh(coordinator: CacheCoordinator, local_cache: LocalCache):
    source = FakeSource()
    _fetch(coordinator, source)

    assert coordinator.mark_dirty(Scope.GLOBAL, "Staff") == 2
    source.items.append({"id": 4, "name": "Dina Lopez"})
    records = _fetch(coordinator, source)

    assert source.calls == 2
    assert len(records) == 4
    assert local_cache.get_marker("global", "Staff") == 2


def test_marker_ahead_of_server_still_served_locally(
    coordinator: CacheCoordinator, local_cache: LocalCache
):
    local_cache.put_records("Staff", [{"id": 9, "name": "Cached"}])
    local_cache.set_marker("global", "Staff", 10)
    source = FakeSource()

    records = _fetch(coordinator, source)

    assert records == [{"id": 9, "name": "Cached"}]
    assert source.calls == 0
    # marker records the version validated against
    assert local_cache.get_marker("global", "Staff") == 1


def test_corrupt_records_force_exactly_one_refresh(
    coordinator: CacheCoordinator, local_cache: LocalCache, local_storage: MemoryLocalStorage
):
    source = FakeSource()
    _fetch(coordinator, source)
    local_storage.set_item("Staff:records", "{broken")

    records = _fetch(coordinator, source)
    assert records == STAFF
    assert source.calls == 2
    assert coordinator.last_outcome == FetchOutcome.CORRUPT
    assert local_cache.get_marker("global", "Staff") == 1

    _fetch(coordinator, source)
    assert source.calls == 2


def test_failed_load_leaves_cache_untouched(coordinator: CacheCoordinator, local_cache: LocalCache):
    _fetch(coordinator, FakeSource())
    coordinator.mark_dirty("global", "Staff")

    failing = FakeSource(error=SourceFetchError("boom"))
    with pytest.raises(SourceFetchError):
        _fetch(coordinator, failing)

    assert local_cache.get_records("Staff") == STAFF
    assert local_cache.get_marker("global", "Staff") == 1


def test_failed_first_load_writes_no_records(coordinator: CacheCoordinator, local_cache: LocalCache):
    with pytest.raises(SourceFetchError):
        _fetch(coordinator, FakeSource(error=SourceFetchError("down")))
    assert local_cache.get_records("Staff") is None
    assert local_cache.get_marker("global", "Staff") == SENTINEL_MARKER


def test_filter_applies_on_both_paths_and_cache_keeps_everything(
    coordinator: CacheCoordinator, local_cache: LocalCache
):
    source = FakeSource()
    rf = RecordFilter("name", "JONES")

    fresh = _fetch(coordinator, source, rf)
    assert fresh == [{"id": 2, "name": "Bea Jones"}]
    assert local_cache.get_records("Staff") == STAFF

    cached = _fetch(coordinator, source, rf)
    assert cached == fresh
    # a different filter needs no new load
    assert _fetch(coordinator, source, RecordFilter("name", "kim")) == [{"id": 3, "name": "Carl Kim"}]
    assert source.calls == 1


def test_refresh_returns_same_types_as_cache(coordinator: CacheCoordinator):
    source = FakeSource(items=[(1, date(2021, 5, 1))], fields=["id", "hired"])
    fresh = _fetch(coordinator, source)
    cached = _fetch(coordinator, source)
    assert fresh == cached == [{"id": 1, "hired": "2021-05-01"}]


def test_unavailable_local_storage_always_refreshes(versions: VersionStore):
    coordinator = CacheCoordinator(versions, LocalCache(NullLocalStorage()))
    source = FakeSource()
    assert _fetch(coordinator, source) == STAFF
    assert _fetch(coordinator, source) == STAFF
    assert source.calls == 2


def test_user_scope_counters(coordinator: CacheCoordinator, local_cache: LocalCache):
    source = FakeSource()
    _fetch(coordinator, source, scope=Scope.USER, key="People")
    assert local_cache.get_marker("user", "People") == 1
    assert local_cache.get_marker("global", "People") == SENTINEL_MARKER


def test_undecodable_records_file_forces_refresh(versions: VersionStore, tmp_path: Path):
    storage = FileLocalStorage(tmp_path)
    coordinator = CacheCoordinator(versions, LocalCache(storage))
    source = FakeSource()
    _fetch(coordinator, source)
    storage._item_path("Staff:records").write_bytes(b"\xff\xfe[garbage")

    assert _fetch(coordinator, source) == STAFF
    assert coordinator.last_outcome == FetchOutcome.CORRUPT
    assert source.calls == 2
    assert _fetch(coordinator, source) == STAFF
    assert source.calls == 2


def test_uuid_and_time_columns_are_cached(coordinator: CacheCoordinator):
    row_id = uuid.UUID("12345678-1234-5678-1234-567812345678")
    source = CallableSource(lambda: ([(row_id, time(9, 30))], ["id", "start"]))
    expected = [{"id": str(row_id), "start": "09:30:00"}]
    assert _fetch(coordinator, source) == expected
    assert _fetch(coordinator, source) == expected


def test_uncacheable_values_fail_the_load(coordinator: CacheCoordinator, local_cache: LocalCache):
    source = FakeSource(items=[(1, object())], fields=["id", "blob"])
    with pytest.raises(SourceFetchError, match="cannot be cached"):
        _fetch(coordinator, source)
    assert local_cache.get_records("Staff") is None
    assert local_cache.get_marker("global", "Staff") == SENTINEL_MARKER
