"""Data models for weight entries, user settings and trend lines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

# Defaults applied when a user has not configured their settings
DEFAULT_LOSS_RATE = 0.0055
DEFAULT_CARB_FAT_RATIO = 0.6
DEFAULT_BUFFER_VALUE = 0.0075

VALID_SOURCES = ("manual", "image", "import")

# A plottable series aligned by index with the daily averages.
# None marks positions without enough history.
TrendSeries = list[Optional[float]]


@dataclass
class User:
    """A registered account."""

    user_id: Optional[int]
    username: str
    email: str
    password_hash: str = field(repr=False, default="")
    created_at: Optional[datetime] = None


@dataclass
class WeightEntry:
    """A single raw measurement."""

    entry_id: Optional[int]
    user_id: int
    value: float
    measured_at: datetime
    notes: Optional[str] = None
    source: str = "manual"

    def __post_init__(self) -> None:
        if self.source not in VALID_SOURCES:
            raise ValueError(
                f"source must be one of {VALID_SOURCES}, got '{self.source}'"
            )


@dataclass
class UserSettings:
    """Per-user goal parameters as stored in the database."""

    user_id: int
    weight_goal: Optional[float] = None
    loss_rate: float = DEFAULT_LOSS_RATE
    buffer_value: float = DEFAULT_BUFFER_VALUE
    carb_fat_ratio: float = DEFAULT_CARB_FAT_RATIO
    openai_api_key: Optional[str] = field(default=None, repr=False)
    updated_at: Optional[datetime] = None

    def to_trend_settings(self) -> "TrendSettings":
        """Return the calculator input. Requires a weight goal."""
        if self.weight_goal is None:
            raise ValueError("weight_goal is not set")
        return TrendSettings(
            weight_goal=self.weight_goal,
            loss_rate=self.loss_rate,
            buffer_value=self.buffer_value,
            carb_fat_ratio=self.carb_fat_ratio,
        )


@dataclass(frozen=True)
class DailyAverage:
    """Mean of all measurements on one calendar day."""

    date: str  # YYYY-MM-DD
    value: float


@dataclass(frozen=True)
class TrendSettings:
    """Input parameters for one trend-line computation."""

    weight_goal: float
    loss_rate: float = DEFAULT_LOSS_RATE
    buffer_value: float = DEFAULT_BUFFER_VALUE
    carb_fat_ratio: float = DEFAULT_CARB_FAT_RATIO


@dataclass
class TrendLines:
    """Floor, ceiling and ideal series for one chart."""

    floor: TrendSeries
    ceiling: TrendSeries
    ideal: TrendSeries

    @property
    def available(self) -> bool:
        return bool(self.floor) and bool(self.ceiling)
