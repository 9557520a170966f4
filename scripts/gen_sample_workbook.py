#!/usr/bin/env python3
"""Generate a synthetic staff workbook for trying out the importer.

Layout of the generated sheet:
- Row 1: header row (id, name, email, active, hired)
- Row 2+: data rows

With --bad-rows N, N rows get a non-numeric id so they are dropped on import.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

FIRST_NAMES = ["Ann", "Bea", "Carl", "Dina", "Emil", "Fay", "Gus", "Hana"]
LAST_NAMES = ["Ito", "Jones", "Kim", "Lopez", "Moreau", "Novak"]


def generate_staff(rows: int, bad_rows: int = 0, seed: int = 42) -> pd.DataFrame:
    """Build a staff DataFrame matching the sample ``Staff`` collection."""
    rng = np.random.default_rng(seed)
    first = rng.choice(FIRST_NAMES, rows)
    last = rng.choice(LAST_NAMES, rows)
    names = [f"{f} {l}" for f, l in zip(first, last, strict=True)]
    hired = pd.date_range("2015-01-01", "2024-12-31", periods=max(rows, 2))[:rows]
    ids: list[object] = list(range(1, rows + 1))
    for idx in rng.choice(rows, size=min(bad_rows, rows), replace=False):
        ids[idx] = f"x{idx}"
    return pd.DataFrame(
        {
            "id": ids,
            "name": names,
            "email": [f"{n.lower().replace(' ', '.')}@example.com" for n in names],
            "active": rng.choice([True, False], rows).tolist(),
            "hired": hired,
        }
    )


def create_workbook(output_path: Path, rows: int, sheet: str = "Staff", bad_rows: int = 0, seed: int = 42) -> None:
    df = generate_staff(rows, bad_rows=bad_rows, seed=seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet, index=False)
    print(f"Created workbook: {output_path}")
    print(f"  Sheet: {sheet} rows={rows} bad_rows={bad_rows}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic staff workbook")
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=1000, help="Data rows (default: 1000)")
    parser.add_argument("--sheet", default="Staff", help="Sheet name (default: Staff)")
    parser.add_argument("--bad-rows", type=int, default=0, help="Rows with a non-numeric id")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() != ".xlsx":
        print("Error: output must have .xlsx extension", file=sys.stderr)
        return 1
    try:
        create_workbook(args.output, args.rows, sheet=args.sheet, bad_rows=args.bad_rows, seed=args.seed)
    except OSError as e:
        print(f"Error creating workbook: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
