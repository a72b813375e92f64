"""Account registration, password login and session tokens.

Passwords are hashed with Werkzeug. A successful login yields a signed
HS256 JWT whose subject is the user id; the CLI keeps it in a session file
so later commands know who is logged in.
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from scaletrack.config.settings import Settings
from scaletrack.errors import AuthenticationError, NotFoundError, RegistrationError
from scaletrack.tracking.models import User
from scaletrack.tracking.queries import UserQueries
from scaletrack.validation import (
    format_validation_errors,
    validate_email,
    validate_password,
    validate_username,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
SECRET_FILE_NAME = "secret.key"


def register_user(
    conn: sqlite3.Connection, username: str, email: str, password: str
) -> User:
    """
    Create a new account.

    Raises:
        RegistrationError: If a field is invalid or the username/email is taken
    """
    errors: list[str] = []
    errors += validate_username(username).errors
    errors += validate_email(email).errors
    errors += validate_password(password).errors
    if errors:
        raise RegistrationError(format_validation_errors(errors))

    email = email.strip().lower()
    if UserQueries.find_by_username_or_email(conn, username, email) is not None:
        raise RegistrationError("Username or email already exists")

    user = User(
        user_id=None,
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
    )
    user.user_id = UserQueries.create_user(conn, user)
    logger.info("Registered user %s (id=%s)", username, user.user_id)
    return user


def authenticate(conn: sqlite3.Connection, username: str, password: str) -> User:
    """
    Check a username/password pair.

    Raises:
        AuthenticationError: On unknown user or wrong password (same message
            for both)
    """
    user = UserQueries.get_by_username(conn, username)
    if user is None or not check_password_hash(user.password_hash, password):
        logger.info("Failed login for %s", username)
        raise AuthenticationError("Invalid username or password")
    return user


def issue_token(
    user: User,
    secret: str,
    ttl_hours: int = 24 * 7,
    now: Optional[datetime] = None,
) -> str:
    """Sign a session token for a user."""
    if user.user_id is None:
        raise ValueError("Cannot issue a token for an unsaved user")

    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user.user_id),
        "username": user.username,
        "iat": issued,
        "exp": issued + timedelta(hours=ttl_hours),
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: str) -> int:
    """
    Verify a session token and return its user id.

    Raises:
        AuthenticationError: If the token is expired, tampered with or malformed
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError("Session expired. Log in again.") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid session token") from e

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Invalid session token") from e


def get_secret_key(settings: Settings) -> str:
    """
    Return the token signing secret.

    Uses auth.secret_key from config when set; otherwise reads (or creates)
    secret.key in the config directory.
    """
    if settings.auth.secret_key:
        return settings.auth.secret_key

    path = settings.config_dir / SECRET_FILE_NAME
    if path.exists():
        return path.read_text().strip()

    path.parent.mkdir(parents=True, exist_ok=True)
    secret = secrets.token_urlsafe(48)
    path.write_text(secret)
    path.chmod(0o600)
    logger.debug("Generated new signing secret at %s", path)
    return secret


class SessionStore:
    """Keeps the current session token in a file."""

    def __init__(self, path: Path):
        self.path = path

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token)
        self.path.chmod(0o600)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        token = self.path.read_text().strip()
        return token or None

    def clear(self) -> bool:
        """Remove the session file. Returns True if one existed."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def current_user_id(settings: Settings) -> int:
    """
    Resolve the logged-in user from the stored session.

    Raises:
        AuthenticationError: If nobody is logged in or the session is invalid
    """
    token = SessionStore(settings.session_path).load()
    if token is None:
        raise AuthenticationError("Not logged in. Run: scaletrack auth login")
    return decode_token(token, get_secret_key(settings))


def current_user(conn: sqlite3.Connection, settings: Settings) -> User:
    """
    Load the logged-in user's account.

    Raises:
        AuthenticationError: If nobody is logged in or the session is invalid
        NotFoundError: If the session refers to a deleted account
    """
    user_id = current_user_id(settings)
    user = UserQueries.get_user(conn, user_id)
    if user is None:
        raise NotFoundError("Session refers to a deleted account. Log in again.")
    return user
