"""Progress summary over a range of daily averages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from scaletrack.tracking.models import DailyAverage
from scaletrack.tracking.stats import (
    TrendDirection,
    classify_trend,
    find_outliers,
    percentage_change,
    round_to,
    running_average,
)

SMOOTHING_WINDOW = 7


@dataclass
class ProgressSummary:
    """Summary of weight change over a period."""

    days_measured: int
    start_date: str
    end_date: str
    start_value: float
    latest_value: float
    change: float
    percent_change: float
    direction: TrendDirection
    smoothed_latest: float  # 7-day running average at the last day
    outliers: list[float] = field(default_factory=list)
    weight_goal: Optional[float] = None
    remaining_to_goal: Optional[float] = None


def generate_summary(
    averages: list[DailyAverage],
    weight_goal: Optional[float] = None,
) -> Optional[ProgressSummary]:
    """Summarize a range of daily averages. Returns None for an empty range."""
    if not averages:
        return None

    values = [day.value for day in averages]
    first, latest = values[0], values[-1]

    remaining = None
    if weight_goal is not None:
        remaining = round_to(latest - weight_goal, 2)

    return ProgressSummary(
        days_measured=len(averages),
        start_date=averages[0].date,
        end_date=averages[-1].date,
        start_value=round_to(first, 2),
        latest_value=round_to(latest, 2),
        change=round_to(latest - first, 2),
        percent_change=round_to(percentage_change(first, latest), 2),
        direction=classify_trend(values),
        smoothed_latest=round_to(running_average(values, SMOOTHING_WINDOW)[-1], 2),
        outliers=find_outliers(values),
        weight_goal=weight_goal,
        remaining_to_goal=remaining,
    )


def format_summary(summary: ProgressSummary) -> str:
    """Human-readable multi-line summary."""
    lines = [
        f"Period: {summary.start_date} to {summary.end_date} "
        f"({summary.days_measured} days measured)",
        f"Latest daily average: {summary.latest_value:.2f}",
        f"7-day average: {summary.smoothed_latest:.2f}",
        f"Change: {summary.change:+.2f} ({summary.percent_change:+.2f}%), {summary.direction}",
    ]
    if summary.weight_goal is not None and summary.remaining_to_goal is not None:
        lines.append(
            f"Goal: {summary.weight_goal:.2f} ({summary.remaining_to_goal:+.2f} to go)"
        )
    if summary.outliers:
        outliers = ", ".join(f"{v:.2f}" for v in summary.outliers)
        lines.append(f"Unusual days: {outliers}")
    return "\n".join(lines)
