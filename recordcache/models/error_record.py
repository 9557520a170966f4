from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the per-row import error log.

One record per rejected spreadsheet row (or per sheet-level problem, with
row=-1). Serialized as a single JSON Lines entry with a fixed key set.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: workbook identifier given to the importer
        sheet: sheet name within the workbook
        row: 1-based workbook row number, -1 when the row is unknown
        field: field whose assignment failed ("" for sheet-level errors)
        error_type: error classification in UPPER_SNAKE_CASE format
        message: human readable reason
    """
    timestamp: str
    source: str
    sheet: str
    row: int
    field: str
    error_type: str
    message: str

    @staticmethod
    def create(
        source: str, sheet: str, row: int, error_type: str, message: str, field: str = ""
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            sheet=sheet,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
