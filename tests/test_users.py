from __future__ import annotations

import pytest

from snippetbox.database import Database
from snippetbox.models import ErrorKind, ModelError
from snippetbox.users import (
    PASSWORD_MAX_BYTES,
    UserStore,
    hash_password,
    password_fits,
    verify_password,
)

EMAIL = "alice@example.com"
PASSWORD = "pa55word-secret"


@pytest.fixture()
def users(database: Database, clock) -> UserStore:
    return UserStore(database, clock=clock)


def test_password_is_stored_hashed(users: UserStore, database: Database) -> None:
    user_id = users.insert("Alice", EMAIL, PASSWORD)

    with database.transaction() as conn:
        stored = conn.execute("SELECT password_hash FROM users WHERE id = ?", (user_id,)).fetchone()[0]
    assert stored != PASSWORD
    assert verify_password(PASSWORD, stored)


def test_duplicate_email_is_distinguishable(users: UserStore) -> None:
    users.insert("Alice", EMAIL, PASSWORD)

    with pytest.raises(ModelError) as excinfo:
        users.insert("Another Alice", EMAIL, "different-password")
    assert excinfo.value.kind is ErrorKind.DUPLICATE_EMAIL


def test_duplicate_email_ignores_case_and_whitespace(users: UserStore) -> None:
    users.insert("Alice", EMAIL, PASSWORD)

    with pytest.raises(ModelError) as excinfo:
        users.insert("Alice", "  ALICE@example.com ", PASSWORD)
    assert excinfo.value.kind is ErrorKind.DUPLICATE_EMAIL


def test_authenticate_returns_user_id(users: UserStore) -> None:
    user_id = users.insert("Alice", EMAIL, PASSWORD)
    assert users.authenticate(EMAIL, PASSWORD) == user_id
    assert users.authenticate(EMAIL.upper(), PASSWORD) == user_id


def test_wrong_password_and_unknown_email_fail_identically(users: UserStore) -> None:
    users.insert("Alice", EMAIL, PASSWORD)

    with pytest.raises(ModelError) as wrong_password:
        users.authenticate(EMAIL, "not-the-password")
    with pytest.raises(ModelError) as unknown_email:
        users.authenticate("nobody@example.com", PASSWORD)

    assert wrong_password.value.kind is unknown_email.value.kind is ErrorKind.INVALID_CREDENTIALS
    assert str(wrong_password.value) == str(unknown_email.value)


def test_exists_and_get(users: UserStore, clock) -> None:
    user_id = users.insert("Alice", EMAIL, PASSWORD)

    assert users.exists(user_id)
    assert not users.exists(user_id + 1)

    user = users.get(user_id)
    assert user.name == "Alice"
    assert user.email == EMAIL
    assert user.created == clock.now

    with pytest.raises(ModelError) as excinfo:
        users.get(user_id + 1)
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


@pytest.mark.parametrize("user_id", [0, -1, 2**63, 2**64])
def test_out_of_range_ids_do_not_exist(users: UserStore, user_id: int) -> None:
    users.insert("Alice", EMAIL, PASSWORD)

    assert not users.exists(user_id)
    with pytest.raises(ModelError) as excinfo:
        users.get(user_id)
    assert excinfo.value.kind is ErrorKind.NOT_FOUND


def test_password_over_bcrypt_limit_is_refused(users: UserStore, database: Database) -> None:
    too_long = "\u00e9" * 37
    assert len(too_long.encode("utf-8")) == 74
    assert not password_fits(too_long)

    with pytest.raises(ValueError):
        users.insert("Alice", EMAIL, too_long)

    with database.transaction() as conn:
        assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 0


def test_password_at_bcrypt_limit_must_match_exactly(users: UserStore) -> None:
    password = "p" * PASSWORD_MAX_BYTES
    user_id = users.insert("Alice", EMAIL, password)

    assert users.authenticate(EMAIL, password) == user_id
    with pytest.raises(ModelError) as excinfo:
        users.authenticate(EMAIL, password + "extra")
    assert excinfo.value.kind is ErrorKind.INVALID_CREDENTIALS


def test_verify_password_rejects_malformed_hash() -> None:
    assert not verify_password(PASSWORD, "not-a-real-hash")
    assert verify_password(PASSWORD, hash_password(PASSWORD))
