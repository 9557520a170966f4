from __future__ import annotations

import logging
import os
import time
import zipfile
from pathlib import Path
from typing import Any

import pandas as pd

from recordcache.excel.reader import (
    SheetHeaderError,
    open_workbook,
    read_sheet,
    sheet_names,
    split_header,
)
from recordcache.logging.error_log import ErrorLogBuffer, ErrorRecord
from recordcache.models.collection import (
    CollectionModel,
    FieldAssignmentError,
    ModelRegistry,
    Record,
)
from recordcache.models.import_result import ImportResult, RowFailure

from .progress import RowProgress

"""Spreadsheet importer: sheet rows -> typed records of a registered collection.

- The header row names the fields; every other cell is assigned to the field
  its header names.
- A row is all-or-nothing: one failed assignment drops the whole row, which
  is logged (WARN + error log entry) and never raised.
- Configuration problems (missing arguments, unknown workbook, sheet or
  collection) raise ConfigurationError before any row is read.
- No pagination: the whole sheet is loaded in memory, so large sheets are slow.
"""

__all__ = [
    "ConfigurationError",
    "SheetHeaderError",
    "SpreadsheetImporter",
]

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Import parameters are missing or name something that does not exist."""


class SpreadsheetImporter:
    def __init__(
        self,
        registry: ModelRegistry,
        source_directory: str | Path = ".",
        error_log: ErrorLogBuffer | None = None,
        keep_na_strings: list[str] | None = None,
    ) -> None:
        self.registry = registry
        self.source_directory = Path(source_directory)
        self.error_log = error_log
        self.keep_na_strings = keep_na_strings
        self._workbooks: dict[Path, pd.ExcelFile] = {}

    def resolve_source(self, source_id: str) -> Path:
        """Map a source id to a workbook path.

        Accepts an existing path, or a name under source_directory with or
        without the ``.xlsx`` suffix.
        """
        direct = Path(source_id)
        candidates = [direct, self.source_directory / source_id]
        if not direct.suffix:
            candidates.append(self.source_directory / f"{source_id}.xlsx")
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise ConfigurationError(f"source not found: {source_id}")

    def workbook(self, path: Path) -> pd.ExcelFile:
        """Open (or reuse) the workbook at ``path``; unreadable files are a ConfigurationError."""
        wb = self._workbooks.get(path)
        if wb is None:
            try:
                wb = open_workbook(path)
            except (ValueError, OSError, zipfile.BadZipFile) as e:
                raise ConfigurationError(f"cannot read workbook {path.name}: {e}") from e
            self._workbooks[path] = wb
        return wb

    def recalculate(self, path: Path) -> None:
        """Best-effort staleness busting before a read.

        Performs a trivial write (bumps the workbook's modification time) and
        drops the cached workbook handle so the next read re-parses the file.
        Not atomic with the read that follows.
        """
        try:
            os.utime(path)
        except OSError as e:
            logger.warning("recalculate: could not touch %s: %s", path, e)
        wb = self._workbooks.pop(path, None)
        if wb is not None:
            wb.close()
        logger.debug("recalculate: reloaded workbook %s", path)

    def close(self) -> None:
        for wb in self._workbooks.values():
            wb.close()
        self._workbooks.clear()

    def import_sheet(
        self,
        source_id: str | None,
        sheet_name: str | None,
        target_collection: str | None = None,
        header_row_count: int = 1,
        header_row_index: int | None = None,
        recalculate: bool = False,
    ) -> list[Record]:
        """Import one sheet and return the successfully built records, in row order."""
        return self.import_sheet_detailed(
            source_id,
            sheet_name,
            target_collection=target_collection,
            header_row_count=header_row_count,
            header_row_index=header_row_index,
            recalculate=recalculate,
        ).records

    def import_sheet_detailed(
        self,
        source_id: str | None,
        sheet_name: str | None,
        target_collection: str | None = None,
        header_row_count: int = 1,
        header_row_index: int | None = None,
        recalculate: bool = False,
    ) -> ImportResult:
        """Like import_sheet, but also reports dropped rows and timing.

        Raises:
            ConfigurationError: missing source/sheet, bad header layout,
                unknown workbook, sheet or collection.
            SheetHeaderError: the sheet has fewer rows than header_row_count.
        """
        if not source_id:
            raise ConfigurationError("source id is required")
        if not sheet_name:
            raise ConfigurationError("sheet name is required")
        if header_row_count < 1:
            raise ConfigurationError(f"header_row_count must be >= 1, got {header_row_count}")
        if header_row_index is None:
            header_row_index = header_row_count - 1
        if not 0 <= header_row_index < header_row_count:
            raise ConfigurationError(
                f"header_row_index {header_row_index} outside the {header_row_count} header rows"
            )

        collection_name = target_collection or sheet_name
        model = self.registry.get(collection_name)
        if model is None:
            raise ConfigurationError(f"no collection registered as '{collection_name}'")

        path = self.resolve_source(source_id)
        if recalculate:
            self.recalculate(path)
        workbook = self.workbook(path)
        if sheet_name not in sheet_names(workbook):
            raise ConfigurationError(f"sheet '{sheet_name}' not found in {path.name}")

        start = time.perf_counter()
        df = read_sheet(workbook, sheet_name, keep_na_strings=self.keep_na_strings)
        sheet = split_header(df, sheet_name, header_row_count, header_row_index)
        logger.debug(
            "import source=%s sheet=%s collection=%s columns=%s rows=%d",
            source_id,
            sheet_name,
            model.name,
            sheet.columns,
            len(sheet.rows),
        )

        columns = self._usable_columns(sheet.columns, model, sheet_name)
        records: list[Record] = []
        failures: list[RowFailure] = []
        with RowProgress(len(sheet.rows), description=f"{sheet_name}") as progress:
            for row in sheet.rows:
                try:
                    records.append(self._build_record(model, columns, row.values))
                except FieldAssignmentError as e:
                    failures.append(RowFailure(row.row_number, e.field_name, e.message))
                    logger.warning(
                        "row dropped sheet=%s row=%d field=%s: %s",
                        sheet_name,
                        row.row_number,
                        e.field_name,
                        e.message,
                    )
                    if self.error_log is not None:
                        self.error_log.append(
                            ErrorRecord.create(
                                source=source_id,
                                sheet=sheet_name,
                                row=row.row_number,
                                error_type="ROW_ASSIGNMENT_ERROR",
                                message=e.message,
                                field=e.field_name,
                            )
                        )
                    progress.advance(success=False)
                    continue
                progress.advance(success=True)

        elapsed = time.perf_counter() - start
        logger.info(
            "imported sheet=%s collection=%s records=%d dropped=%d",
            sheet_name,
            model.name,
            len(records),
            len(failures),
        )
        return ImportResult(
            source=source_id,
            sheet=sheet_name,
            collection=model.name,
            records=records,
            failures=failures,
            total_rows=len(sheet.rows),
            elapsed_seconds=elapsed,
        )

    @staticmethod
    def _usable_columns(
        columns: list[str], model: CollectionModel, sheet_name: str
    ) -> list[tuple[int, str]]:
        usable: list[tuple[int, str]] = []
        unknown: list[str] = []
        for idx, name in enumerate(columns):
            if name in model.fields:
                usable.append((idx, name))
            elif name:
                unknown.append(name)
        if unknown:
            logger.warning(
                "sheet=%s columns not in collection %s are ignored: %s",
                sheet_name,
                model.name,
                unknown,
            )
        return usable

    @staticmethod
    def _build_record(
        model: CollectionModel, columns: list[tuple[int, str]], values: list[Any]
    ) -> Record:
        record = model.new_record()
        assigned = set()
        for idx, name in columns:
            value = values[idx] if idx < len(values) else None
            model.assign(record, name, value)
            assigned.add(name)
        # required fields the sheet has no column for
        for name, spec in model.fields.items():
            if name not in assigned and spec.required:
                raise FieldAssignmentError(name, "value is required")
        return record
