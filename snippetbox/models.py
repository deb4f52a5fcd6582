"""Domain models and error kinds for snippetbox persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class Snippet:
    """A shared text snippet, visible until ``expires`` passes."""

    id: int
    title: str
    content: str
    created: datetime
    expires: datetime


@dataclass(frozen=True)
class User:
    """Represents a user account stored in the snippetbox database."""

    id: int
    name: str
    email: str
    created: datetime


class ErrorKind(Enum):
    NOT_FOUND = "not_found"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_CREDENTIALS = "invalid_credentials"
    INTERNAL = "internal"


_DEFAULT_MESSAGES = {
    ErrorKind.NOT_FOUND: "models: no matching record found",
    ErrorKind.DUPLICATE_EMAIL: "models: duplicate email",
    ErrorKind.INVALID_CREDENTIALS: "models: invalid credentials",
    ErrorKind.INTERNAL: "models: storage failure",
}


class ModelError(Exception):
    """Raised by the stores; callers branch on :attr:`kind`."""

    def __init__(self, kind: ErrorKind, message: str | None = None) -> None:
        super().__init__(message or _DEFAULT_MESSAGES[kind])
        self.kind = kind


__all__ = ["ErrorKind", "ModelError", "Snippet", "User"]
