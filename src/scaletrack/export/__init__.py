"""Chart and entry export."""

from scaletrack.export.formatters import (
    CSVFormatter,
    JSONFormatter,
    TableFormatter,
    build_chart_rows,
    export_entries_csv,
    load_entries_csv,
)

__all__ = [
    "CSVFormatter",
    "JSONFormatter",
    "TableFormatter",
    "build_chart_rows",
    "export_entries_csv",
    "load_entries_csv",
]
