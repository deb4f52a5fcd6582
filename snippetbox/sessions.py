"""Cookie-backed session handling for the snippetbox web interface."""

from __future__ import annotations

from datetime import timedelta
from typing import MutableMapping, Optional

from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

SESSION_COOKIE_NAME = "snippetbox_session"
FLASH_KEY = "flash"
USER_ID_KEY = "authenticated_user_id"


class SessionManager:
    """Configure the signed session cookie and expose the keys the app uses."""

    def __init__(
        self,
        secret: str,
        *,
        ttl: timedelta = timedelta(hours=12),
        https_only: bool = False,
    ) -> None:
        if not secret:
            raise ValueError("A session secret must be provided")
        self._secret = secret
        self._ttl = ttl
        self._https_only = https_only

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def install(self, app: FastAPI) -> None:
        app.add_middleware(
            SessionMiddleware,
            secret_key=self._secret,
            session_cookie=SESSION_COOKIE_NAME,
            max_age=self.cookie_max_age,
            https_only=self._https_only,
            same_site="lax",
        )

    # ------------------------------------------------------------------
    # Per-request helpers
    # ------------------------------------------------------------------
    @staticmethod
    def put_flash(session: MutableMapping[str, object], message: str) -> None:
        session[FLASH_KEY] = message

    @staticmethod
    def pop_flash(session: MutableMapping[str, object]) -> str:
        message = session.pop(FLASH_KEY, "")
        return message if isinstance(message, str) else ""

    @staticmethod
    def authenticated_user_id(session: MutableMapping[str, object]) -> Optional[int]:
        raw = session.get(USER_ID_KEY)
        if raw is None or isinstance(raw, bool):
            return None
        try:
            return int(raw)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None

    @staticmethod
    def renew(session: MutableMapping[str, object]) -> None:
        """Drop everything held for the visitor before a privilege change."""

        session.clear()

    def login(self, session: MutableMapping[str, object], user_id: int) -> None:
        self.renew(session)
        session[USER_ID_KEY] = user_id

    def logout(self, session: MutableMapping[str, object]) -> None:
        self.renew(session)
        session.pop(USER_ID_KEY, None)


__all__ = ["FLASH_KEY", "SESSION_COOKIE_NAME", "SessionManager", "USER_ID_KEY"]
