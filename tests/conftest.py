"""Shared pytest fixtures for flask_database."""
from __future__ import annotations

from pathlib import Path

import pytest

from flask_database.config import ConnectionSettings
from flask_database.connector import open_connection
from flask_database.exceptions import DatabaseConnectionError
from flask_database.hooks import HookDispatcher

USERS = (
    {"id": 1, "name": "sukria", "category": "admin"},
    {"id": 2, "name": "bigpresh", "category": "admin"},
    {"id": 3, "name": "badger", "category": "animal"},
    {"id": 4, "name": "bodger", "category": "man"},
    {"id": 5, "name": "mousey", "category": None},
)


@pytest.fixture()
def sqlite_path(tmp_path: Path) -> str:
    return str(tmp_path / "test.db")


@pytest.fixture()
def hooks() -> HookDispatcher:
    return HookDispatcher()


@pytest.fixture()
def handle(sqlite_path: str, hooks: HookDispatcher):
    settings = ConnectionSettings.from_mapping({"driver": "sqlite", "database": sqlite_path}, charset="utf-8")
    db = open_connection(settings, hooks)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def users_handle(handle):
    handle.do("CREATE TABLE users (id INTEGER, name VARCHAR, category VARCHAR)")
    for row in USERS:
        handle.do("INSERT INTO users (id, name, category) VALUES (?, ?, ?)", (row["id"], row["name"], row["category"]))
    return handle


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, serial: int) -> None:
        self.serial = serial
        self.closed = False
        self.alive = True

    def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Stands in for open_connection; records the settings of every connect."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[ConnectionSettings] = []

    def __call__(self, settings, hooks, log=None) -> FakeHandle:
        if self.fail:
            raise DatabaseConnectionError("Database connection failed - no route to host")
        self.calls.append(settings)
        return FakeHandle(len(self.calls))


def fake_checker(handle: FakeHandle) -> bool:
    return handle.alive


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def connector() -> FakeConnector:
    return FakeConnector()
