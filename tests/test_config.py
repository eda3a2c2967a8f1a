"""Settings resolution and environment loading."""
from __future__ import annotations

import os

import pytest

from flask_database import ConfigurationError, ConnectionSettings
from flask_database.config import DEFAULT_CHECK_THRESHOLD, env_settings, resolve_settings

PLUGIN_SETTINGS = {
    "driver": "mysql",
    "database": "app",
    "charset": "latin1",
    "connections": {
        "reports": {"driver": "sqlite", "dbname": "reports.db", "on_connect_do": "PRAGMA foreign_keys = ON"},
    },
}


def test_defaults_applied() -> None:
    settings = ConnectionSettings.from_mapping({"driver": "sqlite"})

    assert settings.connection_check_threshold == DEFAULT_CHECK_THRESHOLD == 30
    assert settings.auto_utf8 is True
    assert settings.log_queries is False
    assert settings.on_connect_do == ()


def test_falsy_threshold_is_kept() -> None:
    assert ConnectionSettings.from_mapping({"driver": "sqlite", "connection_check_threshold": 0}).connection_check_threshold == 0
    assert ConnectionSettings.from_mapping({"driver": "sqlite", "connection_check_threshold": None}).connection_check_threshold is None


def test_aliases() -> None:
    settings = ConnectionSettings.from_mapping(
        {
            "driver": "mysql",
            "dbname": "app",
            "user": "bob",
            "connectivity-check-threshold": 5,
            "dbi_params": {"connect_timeout": 2},
            "port": "3306",
            "not_a_setting": True,
        }
    )

    assert settings.database == "app"
    assert settings.username == "bob"
    assert settings.connection_check_threshold == 5
    assert settings.driver_options == {"connect_timeout": 2}
    assert settings.port == 3306


def test_canonical_key_wins_over_alias() -> None:
    settings = ConnectionSettings.from_mapping(
        {"connection_check_threshold": 1, "connectivity-check-threshold": 99, "database": "a", "dbname": "b"}
    )

    assert settings.connection_check_threshold == 1
    assert settings.database == "a"


def test_from_mapping_copies_caller_options() -> None:
    options = {"autocommit": True}
    settings = ConnectionSettings.from_mapping({"driver": "mysql", "driver_options": options})

    settings.driver_options["autocommit"] = False

    assert options == {"autocommit": True}


def test_resolve_default_named_and_inline() -> None:
    default = resolve_settings(None, PLUGIN_SETTINGS)
    named = resolve_settings("reports", PLUGIN_SETTINGS, charset="utf-8")
    inline = resolve_settings({"driver": "sqlite", "database": ":memory:"}, PLUGIN_SETTINGS)

    assert (default.driver, default.database, default.charset) == ("mysql", "app", "latin1")
    assert (named.driver, named.database, named.charset) == ("sqlite", "reports.db", "utf-8")
    assert named.on_connect_do == ("PRAGMA foreign_keys = ON",)
    assert inline.database == ":memory:"


def test_resolve_settings_object() -> None:
    settings = ConnectionSettings(driver="sqlite", database=":memory:")

    resolved = resolve_settings(settings, {}, charset="utf-8")

    assert resolved.charset == "utf-8"
    assert settings.charset is None


@pytest.mark.parametrize(
    ("arg", "plugin_settings"),
    [
        ("missing", PLUGIN_SETTINGS),
        ("reports", {"driver": "sqlite"}),
        (None, {"connections": {"reports": {"driver": "sqlite"}}}),
        (None, None),
    ],
)
def test_resolve_failures(arg, plugin_settings) -> None:
    with pytest.raises(ConfigurationError):
        resolve_settings(arg, plugin_settings)


def test_describe_hides_password() -> None:
    assert "secret" not in ConnectionSettings(dsn="mysql://bob:secret@db/app").describe()
    assert ConnectionSettings(driver="mysql", host="db", database="app", password="secret").describe() == "mysql:app@db"


def test_env_settings_reads_dotenv(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    # load_dotenv writes into os.environ; give it a throwaway copy
    monkeypatch.setattr(os, "environ", {k: v for k, v in os.environ.items() if not k.startswith("DATABASE_")})
    (tmp_path / ".env").write_text(
        "DATABASE_DRIVER=sqlite\nDATABASE_NAME=env.db\nDATABASE_CONNECTION_CHECK_THRESHOLD=0\nDATABASE_LOG_QUERIES=yes\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)

    settings = env_settings()

    assert settings == {
        "driver": "sqlite",
        "database": "env.db",
        "connection_check_threshold": 0.0,
        "log_queries": True,
    }


def test_env_settings_url(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(os, "environ", {"DATABASE_URL": "sqlite:///:memory:"})
    monkeypatch.chdir(tmp_path)

    assert env_settings() == {"dsn": "sqlite:///:memory:"}
