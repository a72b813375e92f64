"""Collapse raw weight entries into one average per calendar day."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable

from scaletrack.tracking.models import DailyAverage, WeightEntry

DEFAULT_RANGE_DAYS = 30
MAX_DATA_POINTS = 365


def daily_averages(entries: Iterable[WeightEntry]) -> list[DailyAverage]:
    """
    Average all entries that fall on the same day.

    Days without a measurement are simply absent; no gap filling is done.

    Returns:
        One DailyAverage per measured day, ascending by date
    """
    buckets: dict[date, list[float]] = defaultdict(list)
    for entry in entries:
        buckets[entry.measured_at.date()].append(entry.value)

    return [
        DailyAverage(date=day.isoformat(), value=sum(values) / len(values))
        for day, values in sorted(buckets.items())
    ]


def limit_to_range(
    averages: list[DailyAverage],
    days: int = DEFAULT_RANGE_DAYS,
    max_points: int = MAX_DATA_POINTS,
) -> list[DailyAverage]:
    """
    Keep the trailing `days` calendar days, counted back from the latest entry.

    A non-positive `days` keeps everything. The result never exceeds
    `max_points` entries (the most recent ones are kept).
    """
    if not averages:
        return []

    kept = averages
    if days > 0:
        latest = date.fromisoformat(averages[-1].date)
        cutoff = latest - timedelta(days=days - 1)
        kept = [day for day in averages if date.fromisoformat(day.date) >= cutoff]

    if len(kept) > max_points:
        kept = kept[-max_points:]
    return kept
