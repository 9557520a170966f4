from __future__ import annotations

from pathlib import Path

import pytest

from recordcache.excel.reader import (
    SheetHeaderError,
    open_workbook,
    read_sheet,
    sheet_names,
    split_header,
)


def test_read_and_split_single_header(temp_workdir: Path, workbook_factory):
    path = workbook_factory(
        temp_workdir,
        "staff.xlsx",
        {"Staff": [["id", "name"], [1, "Ann"], [2, "Bea"]]},
    )
    wb = open_workbook(path)
    assert sheet_names(wb) == ["Staff"]
    sheet = split_header(read_sheet(wb, "Staff"), "Staff")
    assert sheet.columns == ["id", "name"]
    assert [r.row_number for r in sheet.rows] == [2, 3]
    assert sheet.rows[0].values == [1, "Ann"]


def test_split_with_title_row_above_header(temp_workdir: Path, workbook_factory):
    path = workbook_factory(
        temp_workdir,
        "titled.xlsx",
        {"Staff": [["Staff list", None], ["id", "name"], [1, "Ann"]]},
    )
    df = read_sheet(open_workbook(path), "Staff")
    sheet = split_header(df, "Staff", header_row_count=2, header_row_index=1)
    assert sheet.columns == ["id", "name"]
    assert len(sheet.rows) == 1
    assert sheet.rows[0].row_number == 3


def test_blank_rows_skipped_and_nan_becomes_none(temp_workdir: Path, workbook_factory):
    path = workbook_factory(
        temp_workdir,
        "gaps.xlsx",
        {"Staff": [["id", "name"], [1, None], [None, None], [3, "Carl"]]},
    )
    sheet = split_header(read_sheet(open_workbook(path), "Staff"), "Staff")
    assert [r.row_number for r in sheet.rows] == [2, 4]
    assert sheet.rows[0].values[1] is None


def test_missing_header_rows(temp_workdir: Path, workbook_factory):
    path = workbook_factory(temp_workdir, "short.xlsx", {"Staff": [["only title"]]})
    df = read_sheet(open_workbook(path), "Staff")
    with pytest.raises(SheetHeaderError):
        split_header(df, "Staff", header_row_count=2, header_row_index=1)


def test_keep_na_strings(temp_workdir: Path, workbook_factory):
    path = workbook_factory(temp_workdir, "na.xlsx", {"Staff": [["code"], ["NA"]]})
    wb = open_workbook(path)
    default = split_header(read_sheet(wb, "Staff"), "Staff")
    assert default.rows == []
    kept = split_header(read_sheet(wb, "Staff", keep_na_strings=["NA"]), "Staff")
    assert kept.rows[0].values == ["NA"]
