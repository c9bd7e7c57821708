# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from tracker.client import ApiClient, AuthSession, LocalStorage, TaskBoard
from tracker.db import set_engine
from tracker.main import app
from tracker.models import Base

from .helpers import register


@pytest.fixture()
def db(tmp_path: Path) -> Iterator[Session]:
    """Store-level session on a throwaway SQLite file."""
    engine = create_engine(f"sqlite:///{tmp_path / 'store.sqlite3'}")
    Base.metadata.create_all(bind=engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


@pytest.fixture()
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """API client; startup builds the engine from DATABASE_URL."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'api.sqlite3'}")
    set_engine(None)
    with TestClient(app) as c:
        yield c
    set_engine(None)


@pytest.fixture()
def headers(client: TestClient) -> dict[str, str]:
    return register(client)


@pytest.fixture()
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture()
def board(client: TestClient, storage: LocalStorage) -> TaskBoard:
    # TestClient is an httpx.Client, so the remote repositories talk to the app in-process.
    api = ApiClient(client, storage)
    return TaskBoard(AuthSession(storage, api), storage, api)
