"""Field validation helpers shared by the snippetbox forms."""
from __future__ import annotations

import re
from typing import Dict, Hashable, List, Pattern

EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class Validator:
    """Accumulates field and non-field errors for a single submission."""

    def __init__(self) -> None:
        self._field_errors: Dict[str, str] = {}
        self._non_field_errors: List[str] = []

    @property
    def field_errors(self) -> Dict[str, str]:
        return dict(self._field_errors)

    @property
    def non_field_errors(self) -> List[str]:
        return list(self._non_field_errors)

    def valid(self) -> bool:
        return not self._field_errors and not self._non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        """Record ``message`` for ``key`` unless the field already has an error."""

        self._field_errors.setdefault(key, message)

    def add_non_field_error(self, message: str) -> None:
        self._non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_field_error(key, message)


def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    # str length counts code points, not encoded bytes
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def max_bytes(value: str, n: int) -> bool:
    return len(value.encode("utf-8")) <= n


def permitted_value(value: Hashable, *permitted: Hashable) -> bool:
    return value in permitted


def matches(value: str, rx: Pattern[str]) -> bool:
    return rx.fullmatch(value) is not None


__all__ = [
    "EMAIL_RX",
    "Validator",
    "matches",
    "max_bytes",
    "max_chars",
    "min_chars",
    "not_blank",
    "permitted_value",
]
