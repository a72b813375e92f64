"""Output formatters for chart data and entry import/export."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

from scaletrack.tracking.models import DailyAverage, TrendLines, WeightEntry

CHART_COLUMNS = ["date", "average", "floor", "ceiling", "ideal"]
ENTRY_COLUMNS = ["measured_at", "value", "notes"]
REQUIRED_ENTRY_COLUMNS = ["measured_at", "value"]


def build_chart_rows(
    averages: list[DailyAverage],
    lines: Optional[TrendLines] = None,
) -> list[dict]:
    """
    Align daily averages and trend lines by index.

    Lines that are unavailable (None or empty) leave their columns as None.
    """

    def _at(series: list, i: int) -> Optional[float]:
        return series[i] if i < len(series) else None

    floor = lines.floor if lines else []
    ceiling = lines.ceiling if lines else []
    ideal = lines.ideal if lines else []

    return [
        {
            "date": day.date,
            "average": day.value,
            "floor": _at(floor, i),
            "ceiling": _at(ceiling, i),
            "ideal": _at(ideal, i),
        }
        for i, day in enumerate(averages)
    ]


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.2f}"


class TableFormatter:
    """Format chart rows as a Rich table for terminal display."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def format(self, rows: list[dict], title: str = "Weight Chart") -> None:
        table = Table(title=title)
        table.add_column("Date", style="cyan")
        table.add_column("Average", justify="right")
        table.add_column("Floor", justify="right", style="green")
        table.add_column("Ideal", justify="right", style="blue")
        table.add_column("Ceiling", justify="right", style="yellow")

        for row in rows:
            table.add_row(
                row["date"],
                _fmt(row["average"]),
                _fmt(row["floor"]),
                _fmt(row["ideal"]),
                _fmt(row["ceiling"]),
            )

        self.console.print(table)


class JSONFormatter:
    """Format chart rows as a JSON response envelope.

    Rows go under data.points next to any extra data fields.
    """

    def format(
        self, rows: list[dict], command: str, human_summary: str = "", **data
    ) -> str:
        return json.dumps(
            {
                "success": True,
                "command": command,
                "data": {**data, "points": rows},
                "human_summary": human_summary,
            },
            indent=2,
        )


class CSVFormatter:
    """Format chart rows as CSV."""

    def format(self, rows: list[dict]) -> str:
        df = pd.DataFrame(rows, columns=CHART_COLUMNS)
        buffer = io.StringIO()
        df.to_csv(buffer, index=False)
        return buffer.getvalue()


def export_entries_csv(entries: list[WeightEntry], path: Path) -> int:
    """Write entries to a CSV file. Returns the number of rows written."""
    df = pd.DataFrame(
        [
            {
                "measured_at": e.measured_at.isoformat(timespec="seconds"),
                "value": e.value,
                "notes": e.notes or "",
            }
            for e in entries
        ],
        columns=ENTRY_COLUMNS,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return len(df)


def load_entries_csv(path: Path) -> tuple[list[dict], int]:
    """
    Read entries from a CSV file.

    CSV format:
        measured_at,value,notes
        2025-01-15T07:30:00,82.4,after run

    Returns:
        (rows as {"measured_at": datetime, "value": float, "notes": str|None},
         number of rows skipped for a missing or unparseable value/date)

    Raises:
        ValueError: If required columns are missing
    """
    df = pd.read_csv(path)

    missing = set(REQUIRED_ENTRY_COLUMNS) - set(df.columns)
    if missing:
        raise ValueError(
            f"Missing required columns: {sorted(missing)}. "
            f"Required columns are: {REQUIRED_ENTRY_COLUMNS}"
        )

    rows: list[dict] = []
    skipped = 0
    for _, row in df.iterrows():
        value = pd.to_numeric(row["value"], errors="coerce")
        measured_at = pd.to_datetime(row["measured_at"], errors="coerce")
        if pd.isna(value) or pd.isna(measured_at):
            skipped += 1
            continue

        notes = row["notes"] if "notes" in df.columns else None
        rows.append(
            {
                "measured_at": measured_at.to_pydatetime().replace(microsecond=0),
                "value": float(value),
                "notes": None if notes is None or pd.isna(notes) or notes == "" else str(notes),
            }
        )

    return rows, skipped
