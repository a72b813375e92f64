"""Weight tracking and goal guidance lines.

Key components:
- Daily averaging of raw measurements
- Floor/ceiling/ideal trend lines that decay toward the weight goal
- Account, entry and settings queries
"""

from __future__ import annotations

from scaletrack.tracking.aggregate import daily_averages, limit_to_range
from scaletrack.tracking.models import (
    DailyAverage,
    TrendLines,
    TrendSeries,
    TrendSettings,
    User,
    UserSettings,
    WeightEntry,
)
from scaletrack.tracking.trendlines import (
    build_trend_lines,
    calculate_ceiling_line,
    calculate_floor_line,
    calculate_ideal_line,
    calculate_trend_lines,
)

__all__ = [
    "DailyAverage",
    "TrendLines",
    "TrendSeries",
    "TrendSettings",
    "User",
    "UserSettings",
    "WeightEntry",
    "build_trend_lines",
    "calculate_ceiling_line",
    "calculate_floor_line",
    "calculate_ideal_line",
    "calculate_trend_lines",
    "daily_averages",
    "limit_to_range",
]
