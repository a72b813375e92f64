"""Small numeric helpers used by the progress summary."""

from __future__ import annotations

import math
from typing import Literal, Sequence

import numpy as np

TrendDirection = Literal["increasing", "decreasing", "stable"]

# Relative change below which a series counts as flat (1%)
STABLE_THRESHOLD = 0.01


def round_to(value: float, decimals: int) -> float:
    """Round to `decimals` places with halves rounded up (toward +inf)."""
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def average(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(values))


def median(values: Sequence[float]) -> float:
    """Median; 0.0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.median(values))


def percentage_change(old_value: float, new_value: float) -> float:
    """Percent change from old to new; 0.0 when old is zero."""
    if old_value == 0:
        return 0.0
    return (new_value - old_value) / old_value * 100


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def lerp(start: float, end: float, factor: float) -> float:
    return start + (end - start) * factor


def classify_trend(values: Sequence[float]) -> TrendDirection:
    """
    Compare first and last values.

    Changes under 1% of the first value are "stable".
    """
    if len(values) < 2:
        return "stable"

    first, last = values[0], values[-1]
    if first == 0:
        return "stable" if last == 0 else ("increasing" if last > 0 else "decreasing")

    if abs((last - first) / first) < STABLE_THRESHOLD:
        return "stable"
    return "increasing" if last > first else "decreasing"


def running_average(values: Sequence[float], window_size: int) -> list[float]:
    """Trailing mean over up to `window_size` values ending at each index."""
    window_size = max(1, window_size)
    result = []
    for i in range(len(values)):
        start = max(0, i - window_size + 1)
        result.append(average(values[start : i + 1]))
    return result


def find_outliers(values: Sequence[float], threshold: float = 2.0) -> list[float]:
    """
    Values further than `threshold` population standard deviations from the mean.

    Needs at least three values to say anything.
    """
    if len(values) < 3:
        return []

    arr = np.asarray(values, dtype=float)
    mean = arr.mean()
    std_dev = arr.std()
    return [float(v) for v in arr[np.abs(arr - mean) > threshold * std_dev]]
