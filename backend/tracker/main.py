from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager

import redis
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import accounts, projects, tasks
from .db import current_engine, get_db, get_engine, set_engine
from .deps import get_current_user
from .errors import NotFound, ServerError, TrackerError
from .logging_setup import setup_logging
from .models import Base
from .schemas import AuthIn, AuthOut, ProjectCreate, ProjectOut, ProjectUpdate, TaskCreate, TaskOut, TaskUpdate, UserOut

logger = logging.getLogger(__name__)

DB_INIT_RETRIES = int(os.environ.get("DB_INIT_RETRIES", "30"))
CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

redis_url = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
r = redis.Redis.from_url(redis_url, decode_responses=True, socket_connect_timeout=1.0)


def _startup():
    # Postgres in docker-compose might not be ready when API boots.
    # Retry a few times before failing hard.
    if current_engine() is not None:
        return
    last_exc: Exception | None = None
    for attempt in range(DB_INIT_RETRIES):
        try:
            engine = get_engine()
            Base.metadata.create_all(bind=engine)
            set_engine(engine)
            logger.info("database ready after %d attempt(s)", attempt + 1)
            return
        except RuntimeError:
            # missing DATABASE_URL will not fix itself
            raise
        except Exception as exc:  # noqa: BLE001
            last_exc = exc
            logger.warning("database not ready (attempt %d): %s", attempt + 1, exc)
            time.sleep(1.0)
    raise RuntimeError(f"DB init failed after retries: {last_exc}")


def _shutdown():
    engine = current_engine()
    if engine is not None:
        engine.dispose()
        set_engine(None)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _startup()
    yield
    _shutdown()


app = FastAPI(title="Tracker API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TrackerError)
async def _tracker_error(request: Request, exc: TrackerError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def _unhandled(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    err = ServerError()
    return JSONResponse(status_code=err.status_code, content={"detail": err.detail})


@app.get("/health")
def health():
    try:
        r.ping()
        redis_ok = True
    except redis.RedisError:
        redis_ok = False
    return {"ok": True, "redis": redis_ok}


@app.get("/healthz")
async def healthz():
    # super cheap liveness probe
    return {"ok": True}


# ---- auth ----


@app.post("/api/auth/register", response_model=AuthOut, status_code=201)
def register(body: AuthIn, s: Session = Depends(get_db)):
    return accounts.register(s, body.email, body.password)


@app.post("/api/auth/login", response_model=AuthOut)
def login(body: AuthIn, s: Session = Depends(get_db)):
    return accounts.login(s, body.email, body.password)


@app.get("/api/auth/me", response_model=UserOut)
def me(u: UserOut = Depends(get_current_user)):
    return u


# ---- projects ----


@app.get("/api/projects", response_model=list[ProjectOut])
def list_projects(u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    return projects.list_projects(s, u.id)


@app.post("/api/projects", response_model=ProjectOut, status_code=201)
def create_project(body: ProjectCreate, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    return projects.create_project(s, u.id, body.name, body.due, body.tasks)


@app.get("/api/projects/{project_id}", response_model=ProjectOut | None)
def get_project(project_id: int, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    # absent project answers 200 with a null body
    try:
        return projects.get_project(s, u.id, project_id)
    except NotFound:
        return None


@app.put("/api/projects/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    body: ProjectUpdate,
    u: UserOut = Depends(get_current_user),
    s: Session = Depends(get_db),
):
    return projects.update_project(s, u.id, project_id, body.model_dump(exclude_unset=True))


@app.delete("/api/projects/{project_id}")
def delete_project(project_id: int, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    projects.delete_project(s, u.id, project_id)
    return {"ok": True}


# ---- tasks ----


@app.get("/api/tasks", response_model=list[TaskOut])
def list_tasks(u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    return tasks.list_tasks(s, u.id)


@app.post("/api/tasks", response_model=TaskOut, status_code=201)
def create_task(body: TaskCreate, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    return tasks.create_task(s, u.id, body.model_dump())


@app.get("/api/tasks/{task_id}", response_model=TaskOut)
def get_task(task_id: int, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    return tasks.get_task(s, u.id, task_id)


@app.put("/api/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    body: TaskUpdate,
    u: UserOut = Depends(get_current_user),
    s: Session = Depends(get_db),
):
    return tasks.update_task(s, u.id, task_id, body.model_dump(exclude_unset=True))


@app.delete("/api/tasks/{task_id}")
def delete_task(task_id: int, u: UserOut = Depends(get_current_user), s: Session = Depends(get_db)):
    tasks.delete_task(s, u.id, task_id)
    return {"ok": True}


def run() -> None:
    import uvicorn

    setup_logging()
    uvicorn.run(app, host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "8000")))
