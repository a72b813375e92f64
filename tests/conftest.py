"""Pytest fixtures for scaletrack tests."""

from __future__ import annotations

import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from scaletrack.db.connection import DatabaseConnection
from scaletrack.tracking.models import DailyAverage, TrendSettings, User
from scaletrack.tracking.queries import EntryQueries, UserQueries


@pytest.fixture
def temp_db():
    """Create a temporary database with schema."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    db = DatabaseConnection(db_path)
    db.initialize_schema()

    yield db

    # Cleanup
    db_path.unlink(missing_ok=True)


@pytest.fixture
def sample_user(temp_db) -> User:
    """A user row (password hash is a placeholder)."""
    user = User(user_id=None, username="alice", email="alice@example.com", password_hash="x")
    with temp_db.get_connection() as conn:
        user.user_id = UserQueries.create_user(conn, user)
    return user


@pytest.fixture
def sample_entries(temp_db, sample_user):
    """Ten days of entries, two measurements on the first day."""
    start = datetime(2025, 1, 1, 7, 0)
    values = [100.0, 100.5, 99.5, 100.0, 99.8, 100.2, 99.5, 99.2, 99.0, 98.9]
    with temp_db.get_connection() as conn:
        for i, value in enumerate(values):
            EntryQueries.add_entry(conn, sample_user.user_id, value, start + timedelta(days=i))
        # Evening reading on day one: averages with 100.0 to 100.5
        EntryQueries.add_entry(conn, sample_user.user_id, 101.0, start.replace(hour=21))
    return values


@pytest.fixture
def worked_example() -> list[DailyAverage]:
    """Daily averages whose first six values average to exactly 100."""
    values = [100, 100.5, 99.5, 100, 99.8, 100.2, 99.5, 99.3, 99.1, 98.9]
    return [
        DailyAverage(date=f"2025-01-{i + 1:02d}", value=v) for i, v in enumerate(values)
    ]


@pytest.fixture
def default_trend_settings() -> TrendSettings:
    return TrendSettings(
        weight_goal=85, loss_rate=0.0055, buffer_value=0.0075, carb_fat_ratio=0.6
    )
