"""Snippet persistence: insert, fetch-if-unexpired and latest listings."""
from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from typing import Callable, List

from .database import (
    SQLITE_MAX_INTEGER,
    Database,
    current_timestamp,
    parse_datetime,
    serialize_datetime,
)
from .models import ErrorKind, ModelError, Snippet

LATEST_LIMIT = 10


class SnippetStore:
    """Reads and writes rows of the ``snippets`` table."""

    def __init__(self, database: Database, *, clock: Callable[[], datetime] = current_timestamp) -> None:
        self._database = database
        self._clock = clock

    def insert(self, title: str, content: str, expires_days: int) -> int:
        """Persist a snippet expiring ``expires_days`` after now and return its id."""

        created = self._clock()
        expires = created + timedelta(days=expires_days)
        try:
            with self._database.transaction() as conn:
                cursor = conn.execute(
                    "INSERT INTO snippets (title, content, created, expires) VALUES (?, ?, ?, ?)",
                    (title, content, serialize_datetime(created), serialize_datetime(expires)),
                )
                snippet_id = cursor.lastrowid
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to insert snippet: {exc}") from exc
        return int(snippet_id)

    def get(self, snippet_id: int) -> Snippet:
        """Return the snippet, or raise ``NOT_FOUND`` if it is missing or expired."""

        if not 1 <= snippet_id <= SQLITE_MAX_INTEGER:
            raise ModelError(ErrorKind.NOT_FOUND)
        now = serialize_datetime(self._clock())
        try:
            with self._database.transaction() as conn:
                row = conn.execute(
                    """
                    SELECT id, title, content, created, expires
                      FROM snippets
                     WHERE expires > ? AND id = ?
                    """,
                    (now, snippet_id),
                ).fetchone()
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to load snippet {snippet_id}: {exc}") from exc
        if row is None:
            raise ModelError(ErrorKind.NOT_FOUND)
        return self._row_to_snippet(row)

    def latest(self) -> List[Snippet]:
        now = serialize_datetime(self._clock())
        try:
            with self._database.transaction() as conn:
                rows = conn.execute(
                    """
                    SELECT id, title, content, created, expires
                      FROM snippets
                     WHERE expires > ?
                  ORDER BY id DESC
                     LIMIT ?
                    """,
                    (now, LATEST_LIMIT),
                ).fetchall()
        except sqlite3.Error as exc:
            raise ModelError(ErrorKind.INTERNAL, f"Failed to list snippets: {exc}") from exc
        return [self._row_to_snippet(row) for row in rows]

    def _row_to_snippet(self, row: sqlite3.Row) -> Snippet:
        return Snippet(
            id=int(row["id"]),
            title=str(row["title"]),
            content=str(row["content"]),
            created=parse_datetime(str(row["created"])),
            expires=parse_datetime(str(row["expires"])),
        )


__all__ = ["LATEST_LIMIT", "SnippetStore"]
