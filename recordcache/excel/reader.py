from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Workbook reading for the spreadsheet importer.

Sheets are read without a header (``header=None``) so the caller decides
which of the leading rows is the header: ``header_row_count`` rows are
skipped, and the one at ``header_row_index`` names the fields.
"""


class SheetHeaderError(Exception):
    """Raised when the sheet has fewer rows than the header layout requires."""


@dataclass(frozen=True)
class SheetRow:
    row_number: int  # 1-based workbook row
    values: list[Any]  # NaN already replaced by None


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]
    rows: list[SheetRow]


def open_workbook(path: Path) -> pd.ExcelFile:
    return pd.ExcelFile(path)


def sheet_names(workbook: pd.ExcelFile) -> list[str]:
    return [str(n) for n in workbook.sheet_names]


def read_sheet(
    workbook: pd.ExcelFile, sheet_name: str, keep_na_strings: list[str] | None = None
) -> pd.DataFrame:
    """Read one sheet as a raw DataFrame (no header row applied).

    keep_na_strings: strings excluded from pandas' default NaN conversion (e.g. ['NA'])
    """
    import pandas._libs.parsers as parsers

    if keep_na_strings:
        na_values = list(parsers.STR_NA_VALUES - set(keep_na_strings))
        keep_default_na = False
    else:
        na_values = None
        keep_default_na = True
    return workbook.parse(sheet_name, header=None, keep_default_na=keep_default_na, na_values=na_values)


def _cell(val: Any) -> Any:
    if isinstance(val, str):
        return val
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        pass
    return val


def split_header(
    df: pd.DataFrame,
    sheet_name: str,
    header_row_count: int = 1,
    header_row_index: int = 0,
) -> SheetData:
    """Split a raw sheet into header names and data rows.

    Fully blank data rows are skipped; row numbers keep counting them.
    Blank header cells produce an empty column name.
    """
    if df.shape[0] < header_row_count:
        raise SheetHeaderError(
            f"sheet '{sheet_name}' has {df.shape[0]} rows, expected {header_row_count} header rows"
        )
    header_series = df.iloc[header_row_index]
    columns = ["" if _cell(c) is None else str(c).strip() for c in header_series.tolist()]

    rows: list[SheetRow] = []
    for offset, (_, raw) in enumerate(df.iloc[header_row_count:].iterrows()):
        if raw.isna().all():
            continue
        rows.append(
            SheetRow(
                row_number=header_row_count + offset + 1,
                values=[_cell(v) for v in raw.tolist()],
            )
        )
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows)
