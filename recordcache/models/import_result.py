from __future__ import annotations

from dataclasses import dataclass, field

from .collection import Record

"""Result models for spreadsheet imports."""


@dataclass(frozen=True)
class RowFailure:
    """A dropped row: workbook row number (1-based), failing field and reason."""
    row_number: int
    field: str
    message: str


@dataclass(frozen=True)
class ImportResult:
    """Outcome of one sheet import.

    ``records`` holds only fully built rows, in workbook order.
    """
    source: str
    sheet: str
    collection: str
    records: list[Record]
    failures: list[RowFailure] = field(default_factory=list)
    total_rows: int = 0  # data rows read (blank rows excluded)
    elapsed_seconds: float = 0.0

    @property
    def imported_rows(self) -> int:
        return len(self.records)

    @property
    def dropped_rows(self) -> int:
        return len(self.failures)
