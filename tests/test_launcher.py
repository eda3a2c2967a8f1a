"""run.py launcher: optional schema setup before serving."""
from __future__ import annotations

import pytest

import run
import setup_db


@pytest.fixture()
def calls(monkeypatch: pytest.MonkeyPatch) -> list:
    calls = []
    monkeypatch.setattr(run, "serve", lambda: calls.append("serve"))
    monkeypatch.setattr(setup_db, "main", lambda: calls.append("init-db"))
    return calls


def test_serves_without_touching_schema(calls) -> None:
    run.run([])

    assert calls == ["serve"]


def test_init_db_runs_before_serving(calls) -> None:
    run.run(["--init-db"])

    assert calls == ["init-db", "serve"]
