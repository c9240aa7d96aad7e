"""User accounts and access-token sessions.

Passwords are hashed with passlib (PBKDF2-SHA256, salt embedded in the hash).
Access tokens are random, handed to the caller once, and stored only as
SHA-256 digests.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import sqlite3
import uuid
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext

from ayush.core.storage.database import HealthDatabase
from ayush.core.storage.models import UserAccount

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthError(Exception):
    """Raised when sign-up or sign-in is rejected."""


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AccountService:
    """Sign-up, sign-in and token verification backed by SQLite.

    Usage::

        accounts = AccountService(db)
        user = accounts.sign_up("asha@example.com", "s3cret!", "Asha")
        token = accounts.sign_in("asha@example.com", "s3cret!")
        accounts.verify_token(token)  # -> UserAccount
    """

    def __init__(self, database: HealthDatabase, *, session_ttl_hours: int = 24 * 7) -> None:
        self._db = database
        self._ttl = timedelta(hours=session_ttl_hours)

    def sign_up(self, email: str, password: str, name: str) -> UserAccount:
        """Create a new account.

        Raises:
            AuthError: On missing fields, a short password, or a taken email.
        """
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not email or not password or not name:
            raise AuthError("Email, password, and name are required")
        if "@" not in email:
            raise AuthError("Email address is not valid")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        user = UserAccount(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            created_at=_now().isoformat(),
        )
        password_hash = pwd_context.hash(password)
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """INSERT INTO users (id, email, name, password_hash, created_at)
                       VALUES (?, ?, ?, ?, ?)""",
                    (user.id, user.email, user.name, password_hash, user.created_at),
                )
        except sqlite3.IntegrityError as exc:
            raise AuthError("An account with this email already exists") from exc

        logger.info("Created account %s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> str:
        """Check credentials and open a session. Returns the access token.

        Raises:
            AuthError: If the credentials do not match.
        """
        email = (email or "").strip().lower()
        row = self._db.connection.execute(
            "SELECT id, password_hash FROM users WHERE email = ?", (email,)
        ).fetchone()
        if row is None or not pwd_context.verify(password or "", row["password_hash"]):
            raise AuthError("Invalid email or password")

        token = secrets.token_urlsafe(32)
        created = _now()
        with self._db.transaction() as conn:
            conn.execute(
                "INSERT INTO sessions (token_hash, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (_hash_token(token), row["id"], created.isoformat(), (created + self._ttl).isoformat()),
            )
        logger.info("Session opened for user %s", row["id"])
        return token

    def verify_token(self, token: str | None) -> UserAccount | None:
        """Resolve an access token to its user, or None if unknown or expired."""
        if not token:
            return None
        row = self._db.connection.execute(
            """SELECT u.id, u.email, u.name, u.created_at, s.expires_at
               FROM sessions s JOIN users u ON u.id = s.user_id
               WHERE s.token_hash = ?""",
            (_hash_token(token),),
        ).fetchone()
        if row is None:
            return None
        if datetime.fromisoformat(row["expires_at"]) <= _now():
            logger.info("Rejected expired session for user %s", row["id"])
            return None
        return UserAccount(
            id=row["id"], email=row["email"], name=row["name"], created_at=row["created_at"]
        )

    def sign_out(self, token: str) -> bool:
        """Revoke a session. Returns True if it existed."""
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE token_hash = ?", (_hash_token(token),))
        return cursor.rowcount > 0

    def purge_expired_sessions(self) -> int:
        """Delete expired sessions. Returns the number removed."""
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (_now().isoformat(),))
        return cursor.rowcount

    def count_users(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM users").fetchone()
        return row[0]
