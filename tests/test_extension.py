"""Flask integration: database() inside app contexts, hooks, runtime config."""
from __future__ import annotations

import os
import sqlite3

import pytest
from flask import Flask

from conftest import FakeClock
from flask_database import ConnectionManager, Database, Handle, database


class ReportingHandle(Handle):
    pass


@pytest.fixture()
def app(sqlite_path: str) -> Flask:
    app = Flask(__name__)
    app.config["DATABASE"] = {
        "driver": "sqlite",
        "database": sqlite_path,
        "connection_check_threshold": 0.1,
        "connections": {"reports": {"driver": "sqlite", "database": ":memory:", "handle_class": ReportingHandle}},
    }
    return app


@pytest.fixture()
def db(app: Flask, clock: FakeClock):
    ext = Database(app, manager=ConnectionManager(clock=clock))
    yield ext
    ext.close()


def test_database_returns_cached_handle(app, db) -> None:
    with app.app_context():
        first = database()
        assert isinstance(first, Handle)
        assert database() is first
        assert app.extensions["database"] is db


def test_named_connection_uses_its_handle_class(app, db) -> None:
    with app.app_context():
        reports = database("reports")

        assert isinstance(reports, ReportingHandle)
        assert reports is not database()


def test_inline_settings(app, db, tmp_path) -> None:
    inline = {"driver": "sqlite", "database": str(tmp_path / "inline.db")}
    with app.app_context():
        handle = database(inline)

        assert handle is not None
        assert database(inline) is handle


def test_missing_named_connection_gives_none(app, db) -> None:
    with app.app_context():
        assert database("nope") is None


def test_config_changes_are_picked_up(app, db) -> None:
    with app.app_context():
        assert database("late") is None
        app.config["DATABASE"]["connections"]["late"] = {"driver": "sqlite", "database": ":memory:"}
        assert database("late") is not None


def test_connected_hook_fires_once(app, db) -> None:
    seen = []

    @db.hook("database_connected")
    def connected(handle):
        seen.append(handle)

    with app.app_context():
        handle = database()
        database()

    assert seen == [handle]


def test_error_hook_fires_for_bad_sql(app, db) -> None:
    errors = []
    db.hook("database_error")(lambda error, handle: errors.append(error))

    with app.app_context():
        with pytest.raises(sqlite3.OperationalError):
            database().do("something silly")

    assert len(errors) == 1


def test_connection_lost_hook_and_reconnect(app, db, clock) -> None:
    lost = []
    db.hook("database_connection_lost")(lost.append)

    with app.app_context():
        first = database()
        first.close()
        clock.advance(1)
        second = database()

    assert lost == [first]
    assert second is not first
    assert second.query_one("SELECT 1 AS ok") == {"ok": 1}


def test_connection_failed_hook(app, db, tmp_path) -> None:
    failed = []
    db.hook("database_connection_failed")(failed.append)

    with app.app_context():
        handle = database({"dsn": f"sqlite:///{tmp_path}/Please/Tell/Me/This/File/Does/Not/Exist!"})

    assert handle is None
    assert len(failed) == 1


def test_unknown_hook_name_rejected(db) -> None:
    with pytest.raises(ValueError):
        db.hook("database_exploded")


def test_env_fallback_without_database_config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(os, "environ", {"DATABASE_DRIVER": "sqlite", "DATABASE_NAME": str(tmp_path / "env.db")})
    monkeypatch.chdir(tmp_path)
    app = Flask(__name__)
    ext = Database(app)

    try:
        with app.app_context():
            handle = database()
            assert handle is not None
            assert handle.settings.database == str(tmp_path / "env.db")
    finally:
        ext.close()


def test_database_requires_extension() -> None:
    app = Flask(__name__)
    with app.app_context():
        with pytest.raises(RuntimeError):
            database()


def test_init_app_sets_default_charset(app, db) -> None:
    assert app.config["DATABASE_CHARSET"] == "utf-8"


def test_env_fallback_is_read_once(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    reads = []

    def fake_env_settings():
        reads.append(1)
        return {"driver": "sqlite", "database": str(tmp_path / "env.db")}

    monkeypatch.setattr("flask_database.extension.env_settings", fake_env_settings)
    app = Flask(__name__)
    ext = Database(app)

    try:
        with app.app_context():
            first = database()
            assert database() is first
            assert database("nope") is None
    finally:
        ext.close()

    assert len(reads) == 1
