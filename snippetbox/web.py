"""Browser-facing routes for sharing snippets and managing accounts."""
from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .config import Settings
from .database import Database, current_timestamp, resolve_database_path
from .forms import FormBindingError, SnippetCreateForm, UserLoginForm, UserSignupForm
from .models import ErrorKind, ModelError
from .database import SQLITE_MAX_INTEGER
from .security import SECURITY_HEADERS, CSRFProtect, csrf_token, security_headers
from .sessions import USER_ID_KEY, SessionManager
from .snippets import SnippetStore
from .users import UserStore

BASE_DIR = Path(__file__).resolve().parent
TEMPLATE_DIR = BASE_DIR / "templates"
STATIC_DIR = BASE_DIR / "static"

# Validation failures re-render the form with this status.
HTTP_UNPROCESSABLE = 422

logger = logging.getLogger("snippetbox.web")


def human_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.astimezone(timezone.utc).strftime("%d %b %Y at %H:%M")


def _request_uri(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def create_app(
    *,
    database: Optional[Database] = None,
    session_secret: Optional[str] = None,
    secure_cookies: bool = False,
    session_ttl: timedelta = timedelta(hours=12),
    initialize_database: bool = False,
    clock: Callable[[], datetime] = current_timestamp,
) -> FastAPI:
    """Create the snippetbox web application."""

    if database is None:
        database = Database(resolve_database_path(os.getenv("SNIPPETBOX_DB_PATH")))
        database.initialize()
    elif initialize_database:
        database.initialize()

    if session_secret is None:
        session_secret = os.getenv("SNIPPETBOX_SESSION_SECRET")
    if not session_secret:
        raise RuntimeError("SNIPPETBOX_SESSION_SECRET must be configured to serve snippetbox")

    snippets = SnippetStore(database, clock=clock)
    users = UserStore(database, clock=clock)
    sessions = SessionManager(session_secret, ttl=session_ttl, https_only=secure_cookies)
    csrf = CSRFProtect()

    app = FastAPI(
        title="Snippetbox",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.database = database
    app.state.snippets = snippets
    app.state.users = users
    app.state.sessions = sessions

    # Middleware added last runs first: recover -> log -> headers -> session.
    sessions.install(app)
    app.middleware("http")(security_headers)

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        client = request.client.host if request.client else "-"
        proto = f"HTTP/{request.scope.get('http_version', '1.1')}"
        logger.info(
            "Received request ip=%s proto=%s method=%s uri=%s",
            client,
            proto,
            request.method,
            _request_uri(request),
        )
        return await call_next(request)

    @app.middleware("http")
    async def recover_panic(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error method=%s uri=%s",
                request.method,
                _request_uri(request),
            )
            return PlainTextResponse(
                "Internal Server Error",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                headers={**SECURITY_HEADERS, "Connection": "close"},
            )

    @app.exception_handler(StarletteHTTPException)
    async def client_error(request: Request, exc: StarletteHTTPException) -> Response:
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
    templates.env.filters["human_date"] = human_date

    def _is_authenticated(request: Request) -> bool:
        cached = getattr(request.state, "is_authenticated", None)
        if cached is not None:
            return bool(cached)

        authenticated = False
        user_id = sessions.authenticated_user_id(request.session)
        if user_id is not None:
            if users.exists(user_id):
                authenticated = True
            else:
                request.session.pop(USER_ID_KEY, None)
        request.state.is_authenticated = authenticated
        return authenticated

    def _render(request: Request, page: str, *, status_code: int = status.HTTP_200_OK, **data: Any):
        context = {
            "current_year": clock().year,
            "flash": sessions.pop_flash(request.session),
            "is_authenticated": _is_authenticated(request),
            "csrf_token": csrf_token(request),
        }
        context.update(data)
        response = templates.TemplateResponse(request, page, context, status_code=status_code)
        if context["is_authenticated"]:
            response.headers["Cache-Control"] = "no-store"
        return response

    def _redirect(request: Request, route: str, **params: Any) -> RedirectResponse:
        return RedirectResponse(
            request.url_for(route, **params),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    def _redirect_to_login(request: Request) -> RedirectResponse:
        return _redirect(request, "user_login")

    def _not_found() -> HTTPException:
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    def _bad_request() -> HTTPException:
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request")

    @app.get("/ping", response_class=PlainTextResponse, name="ping")
    async def ping() -> str:
        return "OK"

    @app.get("/", response_class=HTMLResponse, name="home")
    def home(request: Request):
        return _render(request, "home.html", snippets=snippets.latest())

    @app.get("/snippet/view/{snippet_id}", response_class=HTMLResponse, name="snippet_view")
    def snippet_view(request: Request, snippet_id: str):
        if not (snippet_id.isascii() and snippet_id.isdigit()):
            raise _not_found()
        numeric_id = int(snippet_id)
        if not 1 <= numeric_id <= SQLITE_MAX_INTEGER:
            raise _not_found()

        try:
            snippet = snippets.get(numeric_id)
        except ModelError as exc:
            if exc.kind is ErrorKind.NOT_FOUND:
                raise _not_found()
            raise
        return _render(request, "view.html", snippet=snippet)

    @app.get("/snippet/create", response_class=HTMLResponse, name="snippet_create")
    def snippet_create(request: Request):
        if not _is_authenticated(request):
            return _redirect_to_login(request)
        return _render(request, "create.html", form=SnippetCreateForm())

    @app.post("/snippet/create", name="snippet_create_post", dependencies=[Depends(csrf)])
    async def snippet_create_post(request: Request):
        if not _is_authenticated(request):
            return _redirect_to_login(request)

        try:
            form = SnippetCreateForm.bind(await request.form())
        except FormBindingError:
            raise _bad_request()

        if not form.validate():
            return _render(
                request,
                "create.html",
                status_code=HTTP_UNPROCESSABLE,
                form=form,
            )

        snippet_id = snippets.insert(form.title, form.content, form.expires)
        sessions.put_flash(request.session, "Snippet successfully created!")
        return _redirect(request, "snippet_view", snippet_id=str(snippet_id))

    @app.get("/user/signup", response_class=HTMLResponse, name="user_signup")
    def user_signup(request: Request):
        return _render(request, "signup.html", form=UserSignupForm())

    @app.post("/user/signup", name="user_signup_post", dependencies=[Depends(csrf)])
    async def user_signup_post(request: Request):
        try:
            form = UserSignupForm.bind(await request.form())
        except FormBindingError:
            raise _bad_request()

        if form.validate():
            try:
                users.insert(form.name, form.email, form.password)
            except ModelError as exc:
                if exc.kind is not ErrorKind.DUPLICATE_EMAIL:
                    raise
                form.add_field_error("email", "Email address is already in use")
            else:
                sessions.put_flash(request.session, "Your signup was successful. Please log in.")
                return _redirect(request, "user_login")

        form.password = ""
        return _render(
            request,
            "signup.html",
            status_code=HTTP_UNPROCESSABLE,
            form=form,
        )

    @app.get("/user/login", response_class=HTMLResponse, name="user_login")
    def user_login(request: Request):
        return _render(request, "login.html", form=UserLoginForm())

    @app.post("/user/login", name="user_login_post", dependencies=[Depends(csrf)])
    async def user_login_post(request: Request):
        try:
            form = UserLoginForm.bind(await request.form())
        except FormBindingError:
            raise _bad_request()

        if form.validate():
            try:
                user_id = users.authenticate(form.email, form.password)
            except ModelError as exc:
                if exc.kind is not ErrorKind.INVALID_CREDENTIALS:
                    raise
                form.add_non_field_error("Email or password is incorrect")
            else:
                sessions.login(request.session, user_id)
                logger.info("User %s logged in", user_id)
                return _redirect(request, "snippet_create")

        form.password = ""
        return _render(
            request,
            "login.html",
            status_code=HTTP_UNPROCESSABLE,
            form=form,
        )

    @app.post("/user/logout", name="user_logout", dependencies=[Depends(csrf)])
    def user_logout(request: Request):
        if not _is_authenticated(request):
            return _redirect_to_login(request)

        sessions.logout(request.session)
        sessions.put_flash(request.session, "You've been logged out successfully!")
        return _redirect(request, "home")

    return app


def create_app_from_settings(settings: Settings) -> FastAPI:
    """Build the application described by ``settings``."""

    database = Database(settings.database_path)
    return create_app(
        database=database,
        session_secret=settings.session_secret,
        secure_cookies=settings.secure_cookies,
        session_ttl=timedelta(hours=settings.session_lifetime_hours),
        initialize_database=True,
    )


__all__ = ["create_app", "create_app_from_settings", "human_date"]
