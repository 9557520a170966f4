from __future__ import annotations

import logging

from recordcache.models.collection import Record
from recordcache.store.local_cache import SENTINEL_MARKER, LocalCache, json_safe
from recordcache.store.versions import Scope, VersionStore

from .record_filter import RecordFilter
from .sources import RecordSource, SourceFetchError, snapshot_to_records

"""Cache coordination: serve the local copy or refresh it.

On every fetch the local marker is compared with the authoritative counter:

- marker < counter, or local records missing/corrupt -> load from the source,
  store the unfiltered records, return them filtered
- otherwise -> return the local records filtered, no source access

The marker is set to the observed counter as the last step on both paths.
On the hit path that records which version the cached data was validated
against, even if it was written under an earlier counter value.

A failed load raises SourceFetchError and writes neither records nor marker.
Concurrent stale fetches are not de-duplicated.
"""

__all__ = [
    "CacheCoordinator",
    "FetchOutcome",
]

logger = logging.getLogger(__name__)


class FetchOutcome:
    HIT = "hit"
    STALE = "stale"
    CORRUPT = "corrupt"


class CacheCoordinator:
    def __init__(self, versions: VersionStore, local_cache: LocalCache) -> None:
        self.versions = versions
        self.local_cache = local_cache
        self.last_outcome: str | None = None

    async def fetch(
        self,
        scope: Scope | str,
        key: str,
        source: RecordSource,
        record_filter: RecordFilter | None = None,
    ) -> list[Record]:
        server_version = self.versions.get(scope, key)
        local_marker = self.local_cache.get_marker(scope, key)

        records: list[Record] | None = None
        if local_marker < server_version:
            outcome = FetchOutcome.STALE
        else:
            records = self.local_cache.get_records(key)
            if records is None:
                outcome = FetchOutcome.CORRUPT
                self.local_cache.set_marker(scope, key, SENTINEL_MARKER)
            else:
                outcome = FetchOutcome.HIT

        if records is None:
            snapshot = await source.load()
            # same value types as the hit path
            try:
                records = json_safe(snapshot_to_records(snapshot))
            except (TypeError, ValueError) as e:
                raise SourceFetchError(f"records of {key} cannot be cached: {e}") from e
            self.local_cache.put_records(key, records)

        self.local_cache.set_marker(scope, key, server_version)
        self.last_outcome = outcome
        logger.info(
            "cache %s key=%s marker=%d version=%d records=%d",
            outcome,
            key,
            local_marker,
            server_version,
            len(records),
        )

        if record_filter is not None:
            return record_filter.apply(records)
        return list(records)

    def mark_dirty(self, scope: Scope | str, key: str) -> int:
        """Bump the authoritative counter so every cached copy of ``key`` refreshes."""
        return self.versions.increment(scope, key)
