from __future__ import annotations

from pathlib import Path

import pytest

from snippetbox.config import Settings, load_settings


def test_defaults_without_config_file(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "missing.yaml", environ={})

    assert settings.host == "127.0.0.1"
    assert settings.port == 4000
    assert settings.session_secret is None
    assert settings.session_lifetime_hours == 12
    assert settings.database_path.name == "snippetbox.sqlite3"


def test_yaml_values_resolve_relative_to_file(tmp_path: Path) -> None:
    config = tmp_path / "snippetbox.yaml"
    config.write_text(
        "host: 0.0.0.0\n"
        "port: 8443\n"
        "database_path: data/app.sqlite3\n"
        "session_secret: from-file\n"
        "log_level: debug\n"
        "ssl_certfile: tls/cert.pem\n"
        "ssl_keyfile: tls/key.pem\n",
        encoding="utf-8",
    )

    settings = load_settings(config, environ={})
    assert settings.host == "0.0.0.0"
    assert settings.port == 8443
    assert settings.database_path == (tmp_path / "data" / "app.sqlite3").resolve()
    assert settings.session_secret == "from-file"
    assert settings.log_level == "DEBUG"
    assert settings.ssl_certfile == (tmp_path / "tls" / "cert.pem").resolve()


def test_environment_overrides_file(tmp_path: Path) -> None:
    config = tmp_path / "snippetbox.yaml"
    config.write_text("port: 8443\nsession_secret: from-file\n", encoding="utf-8")

    settings = load_settings(
        config,
        environ={
            "SNIPPETBOX_PORT": "9000",
            "SNIPPETBOX_SESSION_SECRET": "from-env",
            "SNIPPETBOX_SESSION_SECURE": "yes",
            "SNIPPETBOX_DB_PATH": str(tmp_path / "env.sqlite3"),
        },
    )
    assert settings.port == 9000
    assert settings.session_secret == "from-env"
    assert settings.secure_cookies is True
    assert settings.database_path == (tmp_path / "env.sqlite3").resolve()


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValueError):
        Settings.from_dict({"dsn": "mysql://"})


def test_non_mapping_file_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "snippetbox.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(config, environ={})
