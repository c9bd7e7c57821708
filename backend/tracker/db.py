from __future__ import annotations

import os
from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .errors import ServiceUnavailable

_engine: Engine | None = None


def get_engine() -> Engine:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required")
    if url.startswith("sqlite"):
        # TestClient and uvicorn may hand a request to another thread.
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


def set_engine(engine: Engine | None) -> None:
    global _engine
    _engine = engine


def current_engine() -> Engine | None:
    return _engine


def get_db() -> Iterator[Session]:
    if _engine is None:
        raise ServiceUnavailable("db not ready")
    with Session(_engine) as s:
        yield s
