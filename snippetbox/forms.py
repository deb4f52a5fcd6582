"""Form binding and validation for snippet and account submissions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .validator import (
    EMAIL_RX,
    Validator,
    matches,
    max_bytes,
    max_chars,
    min_chars,
    not_blank,
    permitted_value,
)

TITLE_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_BYTES = 72
PERMITTED_EXPIRY_DAYS = (1, 7, 365)
DEFAULT_EXPIRY_DAYS = 365

BLANK_MESSAGE = "This field cannot be blank"


class FormBindingError(ValueError):
    """Raised when submitted data cannot be mapped onto a form at all."""

    def __init__(self, field_name: str, message: str) -> None:
        super().__init__(message)
        self.field_name = field_name


def _first(data: Mapping[str, Any], key: str) -> Optional[str]:
    getlist = getattr(data, "getlist", None)
    if callable(getlist):
        values = getlist(key)
        if not values:
            return None
        value = values[0]
    else:
        value = data.get(key)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
    if value is None:
        return None
    if not isinstance(value, str):
        raise FormBindingError(key, f"Field '{key}' must be a text value")
    return value


def _text(data: Mapping[str, Any], key: str) -> str:
    return _first(data, key) or ""


def _integer(data: Mapping[str, Any], key: str) -> int:
    raw = _first(data, key)
    try:
        return int((raw or "").strip())
    except ValueError as exc:
        raise FormBindingError(key, f"Field '{key}' must be an integer") from exc


class _Form:
    """Forwards the validation API to the form's ``validator`` field."""

    validator: Validator

    def valid(self) -> bool:
        return self.validator.valid()

    def check_field(self, ok: bool, key: str, message: str) -> None:
        self.validator.check_field(ok, key, message)

    def add_field_error(self, key: str, message: str) -> None:
        self.validator.add_field_error(key, message)

    def add_non_field_error(self, message: str) -> None:
        self.validator.add_non_field_error(message)

    @property
    def field_errors(self) -> Dict[str, str]:
        return self.validator.field_errors

    @property
    def non_field_errors(self) -> List[str]:
        return self.validator.non_field_errors


@dataclass
class SnippetCreateForm(_Form):
    title: str = ""
    content: str = ""
    expires: int = DEFAULT_EXPIRY_DAYS
    validator: Validator = field(default_factory=Validator, repr=False, compare=False)

    @classmethod
    def bind(cls, data: Mapping[str, Any]) -> "SnippetCreateForm":
        return cls(
            title=_text(data, "title"),
            content=_text(data, "content"),
            expires=_integer(data, "expires"),
        )

    def validate(self) -> bool:
        self.check_field(not_blank(self.title), "title", BLANK_MESSAGE)
        self.check_field(
            max_chars(self.title, TITLE_MAX_LENGTH),
            "title",
            f"This field cannot be more than {TITLE_MAX_LENGTH} characters long",
        )
        self.check_field(not_blank(self.content), "content", BLANK_MESSAGE)
        self.check_field(
            permitted_value(self.expires, *PERMITTED_EXPIRY_DAYS),
            "expires",
            "This field must equal 1, 7 or 365",
        )
        return self.valid()


@dataclass
class UserSignupForm(_Form):
    name: str = ""
    email: str = ""
    password: str = ""
    validator: Validator = field(default_factory=Validator, repr=False, compare=False)

    @classmethod
    def bind(cls, data: Mapping[str, Any]) -> "UserSignupForm":
        return cls(
            name=_text(data, "name"),
            email=_text(data, "email"),
            password=_text(data, "password"),
        )

    def validate(self) -> bool:
        self.check_field(not_blank(self.name), "name", BLANK_MESSAGE)
        self.check_field(not_blank(self.email), "email", BLANK_MESSAGE)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(
            min_chars(self.password, PASSWORD_MIN_LENGTH),
            "password",
            f"This field must be at least {PASSWORD_MIN_LENGTH} characters long",
        )
        self.check_field(
            max_bytes(self.password, PASSWORD_MAX_BYTES),
            "password",
            f"This field cannot be more than {PASSWORD_MAX_BYTES} bytes long",
        )
        return self.valid()


@dataclass
class UserLoginForm(_Form):
    email: str = ""
    password: str = ""
    validator: Validator = field(default_factory=Validator, repr=False, compare=False)

    @classmethod
    def bind(cls, data: Mapping[str, Any]) -> "UserLoginForm":
        return cls(
            email=_text(data, "email"),
            password=_text(data, "password"),
        )

    def validate(self) -> bool:
        self.check_field(not_blank(self.email), "email", BLANK_MESSAGE)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(not_blank(self.password), "password", BLANK_MESSAGE)
        return self.valid()


__all__ = [
    "DEFAULT_EXPIRY_DAYS",
    "FormBindingError",
    "PASSWORD_MAX_BYTES",
    "PASSWORD_MIN_LENGTH",
    "PERMITTED_EXPIRY_DAYS",
    "SnippetCreateForm",
    "TITLE_MAX_LENGTH",
    "UserLoginForm",
    "UserSignupForm",
]
