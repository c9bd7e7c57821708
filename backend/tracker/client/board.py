from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from ..errors import NotFound, ValidationFailure
from .api import ApiClient, ApiError
from .repositories import (
    LocalProjectRepository,
    LocalTaskRepository,
    ProjectRepository,
    Record,
    RemoteProjectRepository,
    RemoteTaskRepository,
    TaskRepository,
)
from .session import AUTHENTICATED, GUEST, AuthSession
from .storage import PROJECTS_KEY, TASKS_KEY, LocalStorage

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_EXPIRED = "Session expired, please log in again"

FILTERS = ("all", "open", "completed", "today", "upcoming")


class TaskBoard:
    """
    In-memory task and project lists for one client.

    The session mode picks the backing repositories on every call:
    - guest: LocalStorage, written after each mutation
    - authenticated: REST API, the returned record replaces the local copy

    A failed operation leaves the lists untouched and stores a message in
    `error`; nothing is retried.

    An expired token is reported as an error; the board never falls back to
    the guest store on its own.
    """

    def __init__(self, session: AuthSession, storage: LocalStorage, api: ApiClient) -> None:
        self.session = session
        self.storage = storage
        self.api = api
        self.tasks: list[Record] = []
        self.projects: list[Record] = []
        self.error: str | None = None

    # ---- repository selection ----

    @property
    def mode(self) -> str:
        return self.session.mode

    def _live_api(self) -> ApiClient:
        if self.session.expired:
            raise ApiError(401, SESSION_EXPIRED)
        return self.api

    def task_repo(self) -> TaskRepository:
        if self.mode == AUTHENTICATED:
            return RemoteTaskRepository(self._live_api())
        return LocalTaskRepository(self.storage)

    def project_repo(self) -> ProjectRepository:
        if self.mode == AUTHENTICATED:
            return RemoteProjectRepository(self._live_api())
        return LocalProjectRepository(self.storage)

    def _attempt(self, action: str, fn: Callable[[], T]) -> T | None:
        self.error = None
        try:
            return fn()
        except (ApiError, ValidationFailure, NotFound) as exc:
            self.error = exc.detail or f"Failed to {action}"
            logger.info("%s failed (%s): %s", action, self.mode, self.error)
            return None

    @staticmethod
    def _find(items: list[Record], item_id: Any) -> int:
        for i, item in enumerate(items):
            if item["id"] == item_id:
                return i
        raise NotFound("not found")

    # ---- loading ----

    def load(self) -> bool:
        """Replace both lists from the current mode's store."""
        self.error = None
        try:
            tasks = self.task_repo().list()
            projects = self.project_repo().list()
        except ApiError as exc:
            self.error = f"Failed to load tasks: {exc.detail}"
            logger.warning("load failed: %s", exc.detail)
            return False
        self.tasks = tasks
        self.projects = projects
        logger.debug("loaded mode=%s tasks=%d projects=%d", self.mode, len(tasks), len(projects))
        return True

    # ---- tasks ----

    def create_task(
        self,
        title: str,
        description: str | None = None,
        due_date: str | None = None,
        labels: list[str] | None = None,
        priority: str = "medium",
    ) -> Record | None:
        fields = {
            "title": title,
            "description": description,
            "due_date": due_date,
            "labels": labels or [],
            "priority": priority,
        }
        rec = self._attempt("create task", lambda: self.task_repo().create(fields))
        if rec is not None:
            self.tasks.insert(0, rec)
        return rec

    def edit_task(self, task_id: Any, **updates: Any) -> Record | None:
        def run() -> Record:
            i = self._find(self.tasks, task_id)
            rec = self.task_repo().update(task_id, updates)
            self.tasks[i] = rec
            return rec

        return self._attempt("update task", run)

    def toggle_done(self, task_id: Any, done: bool | None = None) -> Record | None:
        def run() -> Record:
            i = self._find(self.tasks, task_id)
            target = (not self.tasks[i].get("done", False)) if done is None else done
            rec = self.task_repo().update(task_id, {"done": target})
            self.tasks[i] = rec
            return rec

        return self._attempt("update task", run)

    def delete_task(self, task_id: Any) -> bool:
        def run() -> bool:
            self._find(self.tasks, task_id)
            self.task_repo().delete(task_id)
            self.tasks = [t for t in self.tasks if t["id"] != task_id]
            return True

        return bool(self._attempt("delete task", run))

    # ---- projects ----

    def add_project(self, name: str, due: str | None = None) -> Record | None:
        rec = self._attempt("create project", lambda: self.project_repo().create(name, due))
        if rec is not None:
            self.projects.append(rec)
        return rec

    def edit_project(self, project_id: Any, **fields: Any) -> Record | None:
        def run() -> Record:
            i = self._find(self.projects, project_id)
            rec = self.project_repo().update(project_id, fields)
            self.projects[i] = rec
            return rec

        return self._attempt("update project", run)

    def delete_project(self, project_id: Any) -> bool:
        def run() -> bool:
            self._find(self.projects, project_id)
            self.project_repo().delete(project_id)
            self.projects = [p for p in self.projects if p["id"] != project_id]
            return True

        return bool(self._attempt("delete project", run))

    def add_subtask(self, project_id: Any, title: str) -> Record | None:
        def run() -> Record:
            i = self._find(self.projects, project_id)
            tasks = [*self.projects[i].get("tasks", []), {"title": title, "done": False}]
            rec = self.project_repo().update(project_id, {"tasks": tasks})
            self.projects[i] = rec
            return rec

        return self._attempt("update project", run)

    def toggle_subtask(self, project_id: Any, index: int) -> Record | None:
        def run() -> Record:
            i = self._find(self.projects, project_id)
            tasks = [dict(t) for t in self.projects[i].get("tasks", [])]
            if not 0 <= index < len(tasks):
                raise NotFound("task not found")
            tasks[index]["done"] = not tasks[index].get("done", False)
            rec = self.project_repo().update(project_id, {"tasks": tasks})
            self.projects[i] = rec
            return rec

        return self._attempt("update project", run)

    # ---- views ----

    def filtered(self, kind: str = "all", today: dt.date | None = None) -> list[Record]:
        if kind not in FILTERS:
            raise ValueError(f"unknown filter {kind!r}")
        day = (today or dt.date.today()).isoformat()

        def due(t: Record) -> str | None:
            d = t.get("due_date")
            return d[:10] if d else None

        if kind == "all":
            return list(self.tasks)
        if kind == "completed":
            return [t for t in self.tasks if t.get("done")]
        if kind == "open":
            return [t for t in self.tasks if not t.get("done")]
        if kind == "today":
            return [t for t in self.tasks if not t.get("done") and due(t) == day]
        return [t for t in self.tasks if not t.get("done") and due(t) is not None and due(t) > day]

    def stats(self) -> dict[str, int]:
        total = len(self.tasks)
        completed = sum(1 for t in self.tasks if t.get("done"))
        percent = 0 if total == 0 else int(completed * 100 / total + 0.5)
        return {"total": total, "completed": completed, "pending": total - completed, "percent": percent}

    def project_progress(self) -> list[dict[str, Any]]:
        """Done and total sub-task counts per project, in list order."""
        out = []
        for p in self.projects:
            subtasks = p.get("tasks", [])
            total = len(subtasks)
            done = sum(1 for t in subtasks if t.get("done"))
            percent = 0 if total == 0 else int(done * 100 / total + 0.5)
            out.append({"id": p["id"], "name": p["name"], "done": done, "total": total, "percent": percent})
        return out

    def clear_guest_tasks(self) -> bool:
        if self.mode != GUEST:
            self.error = "Only guest tasks can be cleared"
            return False
        self.error = None
        self.storage.remove_item(TASKS_KEY)
        self.tasks = []
        logger.info("guest tasks cleared")
        return True

    # ---- guest -> account ----

    def import_guest_data(self) -> dict[str, int] | None:
        """
        Copy tasks and projects saved in guest mode to the signed-in account.

        Runs only when asked and only in authenticated mode. Imported records
        are removed from the local store as they go, so a failed import can be
        resumed without creating duplicates.
        """
        if self.mode != AUTHENTICATED:
            self.error = "Sign in to import guest data"
            return None

        local_tasks = LocalTaskRepository(self.storage).list()
        local_projects = LocalProjectRepository(self.storage).list()
        counts = {"tasks": 0, "projects": 0}

        def run() -> dict[str, int]:
            remote_tasks = self.task_repo()
            remote_projects = self.project_repo()

            # oldest first so the server's newest-first listing keeps local order
            pending = list(local_tasks)
            while pending:
                t = pending[-1]
                remote_tasks.create({k: t.get(k) for k in ("title", "description", "due_date", "labels", "priority", "done")})
                pending.pop()
                self.storage.set_json(TASKS_KEY, pending)
                counts["tasks"] += 1

            pending = list(local_projects)
            while pending:
                p = pending[0]
                remote_projects.create(p["name"], p.get("due"), p.get("tasks", []))
                pending.pop(0)
                self.storage.set_json(PROJECTS_KEY, pending)
                counts["projects"] += 1
            return counts

        result = self._attempt("import guest data", run)
        logger.info("guest import tasks=%d projects=%d", counts["tasks"], counts["projects"])
        if result is None:
            return None
        self.storage.remove_item(TASKS_KEY)
        self.storage.remove_item(PROJECTS_KEY)
        self.load()
        return result
