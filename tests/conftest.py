from __future__ import annotations

import re
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from snippetbox.database import Database
from snippetbox.web import create_app

CSRF_RE = re.compile(r'name="csrf_token" value="([^"]+)"')


class FakeClock:
    """Manually advanced UTC clock for expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def database(tmp_path: Path) -> Database:
    db = Database(tmp_path / "snippetbox.sqlite3")
    db.initialize()
    return db


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def client(database: Database):
    app = create_app(database=database, session_secret="not-so-secret")
    with TestClient(app) as test_client:
        yield test_client


def extract_csrf_token(html: str) -> str:
    match = CSRF_RE.search(html)
    assert match is not None, "form is missing a csrf_token field"
    return match.group(1)
