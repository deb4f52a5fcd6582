"""Configuration management for the snippetbox service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _optional_path(value: object, base_path: Path | None) -> Optional[Path]:
    if value in (None, ""):
        return None
    raw = Path(str(value)).expanduser()
    if not raw.is_absolute() and base_path is not None:
        raw = base_path / raw
    return raw.resolve(strict=False)


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the web service."""

    database_path: Path
    host: str = "127.0.0.1"
    port: int = 4000
    session_secret: Optional[str] = None
    session_lifetime_hours: int = 12
    secure_cookies: bool = False
    log_level: str = "INFO"
    ssl_certfile: Optional[Path] = None
    ssl_keyfile: Optional[Path] = None

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        known = {
            "host",
            "port",
            "database_path",
            "session_secret",
            "session_lifetime_hours",
            "secure_cookies",
            "log_level",
            "ssl_certfile",
            "ssl_keyfile",
        }
        unknown = set(data.keys()) - known
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        database_path = _optional_path(data.get("database_path"), base_path) or resolve_database_path(None)
        lifetime = int(data.get("session_lifetime_hours", 12))  # type: ignore[arg-type]
        if lifetime <= 0:
            raise ValueError("session_lifetime_hours must be positive")

        secret = data.get("session_secret")
        return Settings(
            database_path=database_path,
            host=str(data.get("host", "127.0.0.1")),
            port=int(data.get("port", 4000)),  # type: ignore[arg-type]
            session_secret=str(secret) if secret else None,
            session_lifetime_hours=lifetime,
            secure_cookies=bool(data.get("secure_cookies", False)),
            log_level=str(data.get("log_level", "INFO")).upper(),
            ssl_certfile=_optional_path(data.get("ssl_certfile"), base_path),
            ssl_keyfile=_optional_path(data.get("ssl_keyfile"), base_path),
        )

    def with_environment(self, environ: Mapping[str, str]) -> "Settings":
        """Return a copy with ``SNIPPETBOX_*`` environment overrides applied."""

        overrides: Dict[str, object] = {}
        if environ.get("SNIPPETBOX_HOST"):
            overrides["host"] = environ["SNIPPETBOX_HOST"].strip()
        if environ.get("SNIPPETBOX_PORT"):
            overrides["port"] = int(environ["SNIPPETBOX_PORT"])
        if environ.get("SNIPPETBOX_DB_PATH"):
            overrides["database_path"] = resolve_database_path(environ["SNIPPETBOX_DB_PATH"])
        if environ.get("SNIPPETBOX_SESSION_SECRET"):
            overrides["session_secret"] = environ["SNIPPETBOX_SESSION_SECRET"]
        if "SNIPPETBOX_SESSION_SECURE" in environ:
            overrides["secure_cookies"] = _env_flag(environ.get("SNIPPETBOX_SESSION_SECURE"))
        if environ.get("SNIPPETBOX_LOG_LEVEL"):
            overrides["log_level"] = environ["SNIPPETBOX_LOG_LEVEL"].strip().upper()
        return replace(self, **overrides)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "config" / "snippetbox.yaml").resolve(strict=False)


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from YAML (when present) and apply environment overrides."""

    if environ is None:
        environ = os.environ
    if config_path is None:
        config_path = resolve_config_path(environ.get("SNIPPETBOX_CONFIG"))

    raw: Mapping[str, object] = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        raw = loaded

    settings = Settings.from_dict(raw, base_path=config_path.parent)
    return settings.with_environment(environ)


__all__ = ["Settings", "load_settings", "resolve_config_path"]
