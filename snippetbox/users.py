"""User account persistence and credential checks."""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Callable

from passlib.context import CryptContext

from .database import (
    SQLITE_MAX_INTEGER,
    Database,
    current_timestamp,
    parse_datetime,
    serialize_datetime,
)
from .models import ErrorKind, ModelError, User

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt ignores everything past this many bytes of the encoded password.
PASSWORD_MAX_BYTES = 72


def password_fits(password: str) -> bool:
    return len(password.encode("utf-8")) <= PASSWORD_MAX_BYTES


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _is_duplicate_email(exc: sqlite3.IntegrityError) -> bool:
    message = str(exc)
    return "UNIQUE" in message and "email" in message


class UserStore:
    """Reads and writes rows of the ``users`` table."""

    def __init__(self, database: Database, *, clock: Callable[[], datetime] = current_timestamp) -> None:
        self._database = database
        self._clock = clock

    def insert(self, name: str, email: str, password: str) -> int:
        """Create an account and return its id.

        Raises ``ModelError(DUPLICATE_EMAIL)`` when the address is taken.
        Raises ``ValueError`` for passwords longer than bcrypt can hash.
        """

        if not password_fits(password):
            raise ValueError(f"Password must not exceed {PASSWORD_MAX_BYTES} bytes")
        password_hash = hash_password(password)
        created = serialize_datetime(self._clock())
        try:
            with self._database.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO users (name, email, password_hash, created) VALUES (?, ?, ?, ?)",
                    (name, normalize_email(email), password_hash, created),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            if _is_duplicate_email(exc):
                raise ModelError(ErrorKind.DUPLICATE_EMAIL) from exc
            raise ModelError(ErrorKind.INTERNAL, f"Failed to insert user: {exc}") from exc
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to insert user: {exc}") from exc
        return int(user_id)

    def authenticate(self, email: str, password: str) -> int:
        """Return the id of the account matching the credentials.

        An unknown email and a wrong password both raise the same
        ``ModelError(INVALID_CREDENTIALS)``.
        """

        try:
            with self._database.transaction() as conn:
                row = conn.execute(
                    "SELECT id, password_hash FROM users WHERE email = ?",
                    (normalize_email(email),),
                ).fetchone()
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to look up user: {exc}") from exc

        if row is None:
            _pwd_context.dummy_verify()
            raise ModelError(ErrorKind.INVALID_CREDENTIALS)
        if not password_fits(password) or not verify_password(password, str(row["password_hash"])):
            raise ModelError(ErrorKind.INVALID_CREDENTIALS)
        return int(row["id"])

    def exists(self, user_id: int) -> bool:
        if not 1 <= user_id <= SQLITE_MAX_INTEGER:
            return False
        try:
            with self._database.transaction() as conn:
                row = conn.execute(
                    "SELECT EXISTS(SELECT 1 FROM users WHERE id = ?)",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to check user {user_id}: {exc}") from exc
        return bool(row[0])

    def get(self, user_id: int) -> User:
        if not 1 <= user_id <= SQLITE_MAX_INTEGER:
            raise ModelError(ErrorKind.NOT_FOUND)
        try:
            with self._database.transaction() as conn:
                row = conn.execute(
                    "SELECT id, name, email, created FROM users WHERE id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to load user {user_id}: {exc}") from exc
        if row is None:
            raise ModelError(ErrorKind.NOT_FOUND)
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created=parse_datetime(str(row["created"])),
        )


__all__ = [
    "PASSWORD_MAX_BYTES",
    "UserStore",
    "hash_password",
    "normalize_email",
    "password_fits",
    "verify_password",
]
