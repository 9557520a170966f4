from __future__ import annotations

from recordcache.models.import_result import ImportResult

"""SUMMARY line rendering for the import command."""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for one import.

    Format:
    SUMMARY source={source} sheet={sheet} collection={collection} rows={read}
    imported={ok} dropped={dropped} elapsed_sec={elapsed}

    Examples:
        >>> result = ImportResult(
        ...     source="staff", sheet="Staff", collection="Staff", records=[{}],
        ...     total_rows=2, elapsed_seconds=0.5,
        ... )
        >>> render_summary_line(result)
        'SUMMARY source=staff sheet=Staff collection=Staff rows=2 imported=1 dropped=0 elapsed_sec=0.5'
    """
    return (
        f"SUMMARY source={result.source} "
        f"sheet={result.sheet} "
        f"collection={result.collection} "
        f"rows={result.total_rows} "
        f"imported={result.imported_rows} "
        f"dropped={result.dropped_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
