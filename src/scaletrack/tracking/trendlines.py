"""Floor, ceiling and ideal guidance lines for the weight chart.

The first six daily averages seed the lines: their mean is the start value
and those positions stay empty (None). From the seventh day on, each line
decays toward a target at a constant fractional rate per day:

    floor[i]   = floor[i-1]   - (floor[i-1]   - goal)              * loss_rate
    ceiling[i] = ceiling[i-1] - (ceiling[i-1] - goal * (1+buffer)) * loss_rate * carb_fat_ratio

The ceiling therefore falls more slowly than the floor and levels off above
the goal by the buffer. The ideal line is the midpoint of the two.

Only index position drives the recurrence. Calendar gaps in the input are
not treated specially; resampling is the aggregator's job.
"""

from __future__ import annotations

from typing import Optional, Sequence

from scaletrack.errors import InvalidParameterError
from scaletrack.tracking.models import (
    DailyAverage,
    TrendLines,
    TrendSeries,
    TrendSettings,
    UserSettings,
)
from scaletrack.validation import format_validation_errors, validate_settings

# Number of leading days averaged to seed the lines
WARMUP_DAYS = 6

# Minimum history before any line is attempted
MIN_DAYS = WARMUP_DAYS + 1


def _start_value(daily_averages: Sequence[DailyAverage]) -> float:
    seed = daily_averages[:WARMUP_DAYS]
    return sum(day.value for day in seed) / WARMUP_DAYS


def calculate_floor_line(
    daily_averages: Sequence[DailyAverage],
    settings: TrendSettings,
) -> TrendSeries:
    """
    Calculate the lower guidance line.

    Args:
        daily_averages: Daily averages in ascending date order
        settings: Goal parameters (uses weight_goal, loss_rate, buffer_value)

    Returns:
        Series the same length as daily_averages, or [] when there are
        fewer than 7 days

    Example:
        >>> days = [DailyAverage(f"2025-01-0{i + 1}", 100.0) for i in range(7)]
        >>> calculate_floor_line(days, TrendSettings(weight_goal=85))[6]
        99.625
    """
    if len(daily_averages) < MIN_DAYS:
        return []

    start_value = _start_value(daily_averages)
    result: TrendSeries = [None] * WARMUP_DAYS

    previous = start_value - start_value * settings.buffer_value * 0.5
    result.append(previous)

    for _ in range(MIN_DAYS, len(daily_averages)):
        previous = previous - (previous - settings.weight_goal) * settings.loss_rate
        result.append(previous)

    return result


def calculate_ceiling_line(
    daily_averages: Sequence[DailyAverage],
    settings: TrendSettings,
) -> TrendSeries:
    """
    Calculate the upper guidance line.

    Starts half a buffer above the seed average and decays toward
    goal + goal * buffer_value at rate loss_rate * carb_fat_ratio.

    Args:
        daily_averages: Daily averages in ascending date order
        settings: Goal parameters

    Returns:
        Series the same length as daily_averages, or [] when there are
        fewer than 7 days
    """
    if len(daily_averages) < MIN_DAYS:
        return []

    start_value = _start_value(daily_averages)
    result: TrendSeries = [None] * WARMUP_DAYS

    previous = start_value + start_value * settings.buffer_value * 0.5
    result.append(previous)

    adjusted_goal = settings.weight_goal + settings.weight_goal * settings.buffer_value
    for _ in range(MIN_DAYS, len(daily_averages)):
        previous = (
            previous
            - (previous - adjusted_goal) * settings.loss_rate * settings.carb_fat_ratio
        )
        result.append(previous)

    return result


def calculate_ideal_line(
    floor_data: Sequence[Optional[float]],
    ceiling_data: Sequence[Optional[float]],
) -> TrendSeries:
    """
    Pointwise midpoint of two series.

    Positions where either side is None stay None. Series of different
    lengths give [].
    """
    if len(floor_data) != len(ceiling_data):
        return []

    return [
        None if floor is None or ceiling is None else (floor + ceiling) / 2
        for floor, ceiling in zip(floor_data, ceiling_data)
    ]


def calculate_trend_lines(
    daily_averages: Sequence[DailyAverage],
    settings: TrendSettings,
) -> TrendLines:
    """Calculate all three lines in one pass over the settings."""
    floor = calculate_floor_line(daily_averages, settings)
    ceiling = calculate_ceiling_line(daily_averages, settings)
    return TrendLines(
        floor=floor,
        ceiling=ceiling,
        ideal=calculate_ideal_line(floor, ceiling),
    )


def build_trend_lines(
    daily_averages: Sequence[DailyAverage],
    user_settings: UserSettings,
) -> Optional[TrendLines]:
    """
    Calculate trend lines from stored user settings.

    Returns None when the user has no weight goal, since the lines have
    nothing to converge on.

    Raises:
        InvalidParameterError: If any setting is out of range
    """
    if user_settings.weight_goal is None:
        return None

    check = validate_settings(
        weight_goal=user_settings.weight_goal,
        loss_rate=user_settings.loss_rate,
        buffer_value=user_settings.buffer_value,
        carb_fat_ratio=user_settings.carb_fat_ratio,
    )
    if not check.is_valid:
        raise InvalidParameterError(format_validation_errors(check.errors))

    return calculate_trend_lines(daily_averages, user_settings.to_trend_settings())
