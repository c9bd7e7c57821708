# tests/test_api_errors.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tracker import tasks
from tracker.db import set_engine
from tracker.main import app

from .helpers import register


def test_unhandled_error_is_logged_and_hidden(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'api.sqlite3'}")
    set_engine(None)

    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(tasks, "list_tasks", boom)

    with TestClient(app, raise_server_exceptions=False) as c:
        headers = register(c)
        with caplog.at_level(logging.ERROR, logger="tracker.main"):
            resp = c.get("/api/tasks", headers=headers)

    set_engine(None)
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Server error"}
    assert "disk on fire" not in resp.text
    assert any("unhandled error on GET /api/tasks" in rec.getMessage() for rec in caplog.records)


def test_requests_before_database_ready_get_503() -> None:
    set_engine(None)
    # no context manager: lifespan never runs, so no engine exists
    c = TestClient(app)
    resp = c.post("/api/auth/register", json={"email": "a@x.com", "password": "pw1"})
    assert resp.status_code == 503
    assert resp.json() == {"detail": "db not ready"}
