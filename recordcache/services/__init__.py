"""Cache coordination, record sources and the spreadsheet importer."""

from .coordinator import CacheCoordinator
from .importer import ConfigurationError, SpreadsheetImporter
from .record_filter import RecordFilter
from .sources import (
    CallableSource,
    PgTableSource,
    RecordSource,
    SourceFetchError,
    SourceSnapshot,
    snapshot_to_records,
)

__all__ = [
    "CacheCoordinator",
    "ConfigurationError",
    "SpreadsheetImporter",
    "RecordFilter",
    "CallableSource",
    "PgTableSource",
    "RecordSource",
    "SourceFetchError",
    "SourceSnapshot",
    "snapshot_to_records",
]
