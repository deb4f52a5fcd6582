from __future__ import annotations

import pytest

from snippetbox.validator import (
    EMAIL_RX,
    Validator,
    matches,
    max_bytes,
    max_chars,
    min_chars,
    not_blank,
    permitted_value,
)


def test_new_validator_is_valid() -> None:
    validator = Validator()
    assert validator.valid()
    assert validator.field_errors == {}
    assert validator.non_field_errors == []


def test_first_field_error_wins() -> None:
    validator = Validator()
    validator.check_field(False, "x", "first")
    validator.check_field(False, "x", "second")
    validator.add_field_error("x", "third")

    assert validator.field_errors == {"x": "first"}
    assert not validator.valid()


def test_passing_check_records_nothing() -> None:
    validator = Validator()
    validator.check_field(True, "x", "unused")
    assert validator.valid()


def test_non_field_errors_keep_order_and_duplicates() -> None:
    validator = Validator()
    validator.add_non_field_error("one")
    validator.add_non_field_error("two")
    validator.add_non_field_error("one")

    assert validator.non_field_errors == ["one", "two", "one"]
    assert not validator.valid()


def test_error_views_are_copies() -> None:
    validator = Validator()
    validator.field_errors["x"] = "sneaky"
    validator.non_field_errors.append("sneaky")
    assert validator.valid()


@pytest.mark.parametrize(
    "value, expected",
    [("hello", True), ("", False), ("   ", False), ("\t\n", False), ("  x ", True)],
)
def test_not_blank(value: str, expected: bool) -> None:
    assert not_blank(value) is expected


def test_max_chars_counts_code_points_not_bytes() -> None:
    title = "é" * 100
    assert len(title.encode("utf-8")) == 200
    assert max_chars(title, 100)
    assert not max_chars(title + "é", 100)
    assert max_chars("日本語", 3)


def test_max_bytes_counts_encoded_bytes() -> None:
    assert max_bytes("a" * 72, 72)
    assert not max_bytes("a" * 73, 72)
    assert max_bytes("\u00e9" * 36, 72)
    assert not max_bytes("\u00e9" * 37, 72)


def test_min_chars_counts_code_points() -> None:
    assert min_chars("ñññññññ🙂", 8)
    assert not min_chars("ñññññññ", 8)


def test_permitted_value() -> None:
    assert permitted_value(7, 1, 7, 365)
    assert not permitted_value(30, 1, 7, 365)
    assert not permitted_value("7", 1, 7, 365)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("alice@example.com", True),
        ("bob.smith+tag@mail.example.co.uk", True),
        ("alice@", False),
        ("@example.com", False),
        ("alice example.com", False),
        ("alice@example.com trailing", False),
        ("", False),
    ],
)
def test_matches_email_pattern(value: str, expected: bool) -> None:
    assert matches(value, EMAIL_RX) is expected
