"""Command-line interface for the snippetbox service."""

from __future__ import annotations
import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import Sequence

from snippetbox.config import Settings, load_settings
from snippetbox.database import Database
from snippetbox.forms import PASSWORD_MIN_LENGTH, UserSignupForm
from snippetbox.models import ErrorKind, ModelError
from snippetbox.users import UserStore

logger = logging.getLogger("snippetbox.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Snippetbox service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (defaults to SNIPPETBOX_CONFIG or config/snippetbox.yaml)",
    )

    subparsers.add_parser("init-db", parents=[common], help="Initialise the snippetbox database")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address (overrides settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Listen port (overrides settings)")
    serve_parser.add_argument(
        "--ssl-certfile",
        default=None,
        help="Path to the TLS certificate chain in PEM format",
    )
    serve_parser.add_argument(
        "--ssl-keyfile",
        default=None,
        help="Path to the TLS private key in PEM format",
    )

    user_parser = subparsers.add_parser("create-user", parents=[common], help="Create a user account")
    user_parser.add_argument("name", help="Display name for the user")
    user_parser.add_argument("email", help="Unique email address for login")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(settings: Settings, args: argparse.Namespace) -> None:
    from snippetbox.web import create_app_from_settings
    import uvicorn

    host = args.host or settings.host
    port = args.port or settings.port
    ssl_certfile = args.ssl_certfile or (str(settings.ssl_certfile) if settings.ssl_certfile else None)
    ssl_keyfile = args.ssl_keyfile or (str(settings.ssl_keyfile) if settings.ssl_keyfile else None)

    if bool(ssl_certfile) ^ bool(ssl_keyfile):
        raise SystemExit("Both --ssl-certfile and --ssl-keyfile must be provided together.")

    try:
        app = create_app_from_settings(settings)
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    protocol = "https" if ssl_certfile and ssl_keyfile else "http"
    logger.info("Starting server on %s://%s:%s", protocol, host, port)
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
        ssl_certfile=ssl_certfile,
        ssl_keyfile=ssl_keyfile,
    )


def _create_user(database: Database, name: str, email: str, password: str) -> int:
    form = UserSignupForm(name=name.strip(), email=email.strip(), password=password)
    if not form.validate():
        for field_name, message in form.field_errors.items():
            print(f"{field_name}: {message}", file=sys.stderr)
        return 1

    try:
        user_id = UserStore(database).insert(form.name, form.email, form.password)
    except ModelError as exc:
        if exc.kind is not ErrorKind.DUPLICATE_EMAIL:
            raise
        print("Error: a user with that email already exists", file=sys.stderr)
        return 1

    print(f"Created user #{user_id}: {form.name} <{form.email.lower()}>")
    return 0


def _prompt_for_password() -> str | None:
    for _ in range(3):
        password = getpass(f"Password (min {PASSWORD_MIN_LENGTH} characters): ")
        if len(password) < PASSWORD_MIN_LENGTH:
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    settings = load_settings(Path(args.config) if args.config else None)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    database = _initialise_database(settings)

    if args.command == "init-db":
        return 0

    if args.command == "create-user":
        password = _prompt_for_password()
        if password is None:
            print("Failed to set password after three attempts.", file=sys.stderr)
            return 1
        return _create_user(database, args.name, args.email, password)

    _serve(settings, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
