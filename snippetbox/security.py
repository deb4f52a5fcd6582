"""Security helpers for the snippetbox web interface."""
from __future__ import annotations

import secrets
from typing import Awaitable, Callable, Dict

from fastapi import HTTPException, Request, status
from starlette.responses import Response

CSRF_SESSION_KEY = "csrf_token"
CSRF_FORM_FIELD = "csrf_token"

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})

SECURITY_HEADERS: Dict[str, str] = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
    "Server": "snippetbox",
}


def csrf_token(request: Request) -> str:
    """Return the visitor's CSRF token, issuing one on first use."""

    token = request.session.get(CSRF_SESSION_KEY)
    if not isinstance(token, str) or not token:
        token = secrets.token_urlsafe(32)
        request.session[CSRF_SESSION_KEY] = token
    return token


class CSRFProtect:
    """Reject state-changing form posts whose token does not match the session."""

    def __init__(self, field_name: str = CSRF_FORM_FIELD) -> None:
        self._field_name = field_name

    async def __call__(self, request: Request) -> None:
        if request.method in SAFE_METHODS:
            return None

        expected = request.session.get(CSRF_SESSION_KEY)
        form = await request.form()
        provided = form.get(self._field_name)
        if (
            isinstance(expected, str)
            and expected
            and isinstance(provided, str)
            and secrets.compare_digest(provided, expected)
        ):
            return None

        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")


async def security_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


__all__ = [
    "CSRFProtect",
    "CSRF_FORM_FIELD",
    "CSRF_SESSION_KEY",
    "SECURITY_HEADERS",
    "csrf_token",
    "security_headers",
]
