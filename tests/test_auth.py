"""Tests for registration, login and session tokens."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from scaletrack.auth import (
    SessionStore,
    authenticate,
    current_user,
    current_user_id,
    decode_token,
    get_secret_key,
    issue_token,
    register_user,
)
from scaletrack.config.settings import Settings
from scaletrack.errors import AuthenticationError, NotFoundError, RegistrationError

SECRET = "test-secret-key-that-is-long-enough-for-hs256"


class TestRegistration:
    def test_register_and_authenticate(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            user = register_user(conn, "bob_1", "Bob@Example.com", "Secret123")
            assert user.user_id is not None
            assert user.email == "bob@example.com"
            assert user.password_hash != "Secret123"

            logged_in = authenticate(conn, "bob_1", "Secret123")
        assert logged_in.user_id == user.user_id

    def test_duplicate_rejected(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            register_user(conn, "bob_1", "bob@example.com", "Secret123")
            with pytest.raises(RegistrationError, match="already exists"):
                register_user(conn, "bob_2", "bob@example.com", "Secret123")
            with pytest.raises(RegistrationError, match="already exists"):
                register_user(conn, "bob_1", "other@example.com", "Secret123")

    def test_invalid_fields(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(RegistrationError) as exc_info:
                register_user(conn, "b", "not-an-email", "weak")
        message = str(exc_info.value)
        assert "Username must be at least 3 characters long" in message
        assert "Email must be a valid email address" in message
        assert "Password must be at least 8 characters long" in message

    def test_bad_password(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            register_user(conn, "bob_1", "bob@example.com", "Secret123")
            with pytest.raises(AuthenticationError):
                authenticate(conn, "bob_1", "Wrong1234")
            with pytest.raises(AuthenticationError):
                authenticate(conn, "nobody", "Secret123")


class TestTokens:
    def test_round_trip(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            user = register_user(conn, "bob_1", "bob@example.com", "Secret123")
        token = issue_token(user, SECRET)
        assert decode_token(token, SECRET) == user.user_id

    def test_expired(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            user = register_user(conn, "bob_1", "bob@example.com", "Secret123")
        past = datetime.now(timezone.utc) - timedelta(hours=48)
        token = issue_token(user, SECRET, ttl_hours=1, now=past)
        with pytest.raises(AuthenticationError, match="expired"):
            decode_token(token, SECRET)

    def test_wrong_secret(self, temp_db) -> None:
        with temp_db.get_connection() as conn:
            user = register_user(conn, "bob_1", "bob@example.com", "Secret123")
        token = issue_token(user, SECRET)
        with pytest.raises(AuthenticationError):
            decode_token(token, SECRET + "-other")

    def test_garbage(self) -> None:
        with pytest.raises(AuthenticationError):
            decode_token("not.a.token", SECRET)


class TestSessions:
    def test_store(self, tmp_path) -> None:
        store = SessionStore(tmp_path / "session")
        assert store.load() is None
        store.save("abc")
        assert store.load() == "abc"
        assert store.clear()
        assert not store.clear()

    def test_secret_generated_once(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SCALETRACK_HOME", str(tmp_path))
        settings = Settings()
        first = get_secret_key(settings)
        assert (tmp_path / "secret.key").exists()
        assert get_secret_key(settings) == first

    def test_configured_secret_wins(self, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SCALETRACK_HOME", str(tmp_path))
        settings = Settings()
        settings.auth.secret_key = SECRET
        assert get_secret_key(settings) == SECRET
        assert not (tmp_path / "secret.key").exists()

    def test_current_user_id(self, temp_db, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SCALETRACK_HOME", str(tmp_path))
        settings = Settings()
        with pytest.raises(AuthenticationError, match="Not logged in"):
            current_user_id(settings)

        with temp_db.get_connection() as conn:
            user = register_user(conn, "bob_1", "bob@example.com", "Secret123")
        SessionStore(settings.session_path).save(issue_token(user, get_secret_key(settings)))
        assert current_user_id(settings) == user.user_id

    def test_current_user_deleted_account(self, temp_db, tmp_path, monkeypatch) -> None:
        monkeypatch.setenv("SCALETRACK_HOME", str(tmp_path))
        settings = Settings()
        with temp_db.get_connection() as conn:
            user = register_user(conn, "carol", "carol@example.com", "Secret123")
            SessionStore(settings.session_path).save(issue_token(user, get_secret_key(settings)))
            assert current_user(conn, settings).username == "carol"

            conn.execute("DELETE FROM users WHERE user_id = ?", (user.user_id,))
            with pytest.raises(NotFoundError):
                current_user(conn, settings)
