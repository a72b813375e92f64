"""Tests for entry and settings queries."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from scaletrack.tracking.aggregate import daily_averages
from scaletrack.tracking.models import UserSettings
from scaletrack.tracking.queries import EntryQueries, SettingsQueries, UserQueries


class TestUserQueries:
    def test_lookup(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            assert UserQueries.get_user(conn, sample_user.user_id).username == "alice"
            assert UserQueries.get_by_username(conn, "alice").user_id == sample_user.user_id
            assert UserQueries.get_by_username(conn, "bob") is None

    def test_find_by_username_or_email(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            assert UserQueries.find_by_username_or_email(conn, "other", "alice@example.com")
            assert UserQueries.find_by_username_or_email(conn, "alice", "new@example.com")
            assert UserQueries.find_by_username_or_email(conn, "bob", "bob@example.com") is None


class TestEntryQueries:
    def test_list_is_chronological(self, temp_db, sample_user, sample_entries) -> None:
        with temp_db.get_connection() as conn:
            entries = EntryQueries.list_entries(conn, sample_user.user_id)
        assert len(entries) == len(sample_entries) + 1
        stamps = [e.measured_at for e in entries]
        assert stamps == sorted(stamps)

    def test_daily_averages_from_db(self, temp_db, sample_user, sample_entries) -> None:
        with temp_db.get_connection() as conn:
            averages = daily_averages(EntryQueries.list_entries(conn, sample_user.user_id))
        assert len(averages) == 10
        assert averages[0].value == pytest.approx(100.5)

    def test_list_last_days(self, temp_db, sample_user, sample_entries) -> None:
        with temp_db.get_connection() as conn:
            entries = EntryQueries.list_entries(
                conn, sample_user.user_id, days=3, today=date(2025, 1, 10)
            )
        assert [e.measured_at.day for e in entries] == [8, 9, 10]

    def test_update_and_delete(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            entry = EntryQueries.add_entry(
                conn, sample_user.user_id, 80.0, datetime(2025, 5, 1, 8, 0), notes="before"
            )
            updated = EntryQueries.update_entry(
                conn, sample_user.user_id, entry.entry_id, value=79.5, notes="after"
            )
            assert updated.value == 79.5
            reloaded = EntryQueries.get_entry(conn, sample_user.user_id, entry.entry_id)
            assert reloaded.notes == "after"
            assert reloaded.measured_at == datetime(2025, 5, 1, 8, 0)

            assert EntryQueries.delete_entry(conn, sample_user.user_id, entry.entry_id)
            assert not EntryQueries.delete_entry(conn, sample_user.user_id, entry.entry_id)
            assert EntryQueries.update_entry(conn, sample_user.user_id, entry.entry_id, value=1) is None

    def test_entries_scoped_to_user(self, temp_db, sample_user, sample_entries) -> None:
        with temp_db.get_connection() as conn:
            other = EntryQueries.list_entries(conn, sample_user.user_id + 1)
            first = EntryQueries.list_entries(conn, sample_user.user_id)[0]
            assert other == []
            assert EntryQueries.get_entry(conn, sample_user.user_id + 1, first.entry_id) is None

    def test_delete_all(self, temp_db, sample_user, sample_entries) -> None:
        with temp_db.get_connection() as conn:
            assert EntryQueries.delete_all(conn, sample_user.user_id) == 11
            assert EntryQueries.list_entries(conn, sample_user.user_id) == []

    def test_invalid_source_rejected(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError):
                EntryQueries.add_entry(conn, sample_user.user_id, 80.0, source="guess")


class TestSettingsQueries:
    def test_defaults_when_unset(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            s = SettingsQueries.get_settings(conn, sample_user.user_id)
        assert s.weight_goal is None
        assert s.loss_rate == 0.0055
        assert s.carb_fat_ratio == 0.6
        assert s.buffer_value == 0.0075

    def test_save_and_update(self, temp_db, sample_user) -> None:
        with temp_db.get_connection() as conn:
            SettingsQueries.save_settings(
                conn, UserSettings(user_id=sample_user.user_id, weight_goal=75.0)
            )
            s = SettingsQueries.get_settings(conn, sample_user.user_id)
            assert s.weight_goal == 75.0
            assert s.updated_at is not None

            s.loss_rate = 0.01
            s.openai_api_key = "sk-test"
            SettingsQueries.save_settings(conn, s)
            again = SettingsQueries.get_settings(conn, sample_user.user_id)
        assert again.loss_rate == 0.01
        assert again.openai_api_key == "sk-test"
        assert again.weight_goal == 75.0


class TestSchema:
    def test_initialize_is_idempotent(self, temp_db) -> None:
        temp_db.initialize_schema()
        with temp_db.get_connection() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"users", "weight_entries", "user_settings"} <= tables
