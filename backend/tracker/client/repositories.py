"""Two interchangeable stores for tasks and projects.

Local repositories keep records in LocalStorage (guest mode); remote ones go
through the REST API (authenticated mode). Both return plain dict records of
the same shape. They never read from or write to each other.
"""
from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Protocol

from ..errors import NotFound
from ..projects import clean_name, clean_project_fields, clean_subtasks
from ..tasks import clean_task_fields
from .api import ApiClient
from .storage import PROJECTS_KEY, TASKS_KEY, LocalStorage

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class TaskRepository(Protocol):
    def list(self) -> list[Record]: ...

    def create(self, fields: Record) -> Record: ...

    def update(self, task_id: Any, fields: Record) -> Record: ...

    def delete(self, task_id: Any) -> None: ...


class ProjectRepository(Protocol):
    def list(self) -> list[Record]: ...

    def create(self, name: str, due: str | None = None, tasks: list[Record] | None = None) -> Record: ...

    def update(self, project_id: Any, fields: Record) -> Record: ...

    def delete(self, project_id: Any) -> None: ...


# ---- guest: local storage ----


class LocalTaskRepository:
    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def list(self) -> list[Record]:
        return list(self.storage.get_json(TASKS_KEY, []))

    def _save(self, items: list[Record]) -> None:
        self.storage.set_json(TASKS_KEY, items)

    def create(self, fields: Record) -> Record:
        fields = clean_task_fields({"title": None, **fields})
        rec = {
            "id": str(uuid.uuid4()),
            "title": fields["title"],
            "description": fields.get("description"),
            "due_date": fields.get("due_date"),
            "labels": fields.get("labels", []),
            "priority": fields.get("priority", "medium"),
            "done": False,
            "created_at": int(time.time()),
        }
        # newest first
        self._save([rec, *self.list()])
        logger.debug("guest task created id=%s", rec["id"])
        return rec

    def update(self, task_id: Any, fields: Record) -> Record:
        fields = clean_task_fields(fields)
        items = self.list()
        for i, t in enumerate(items):
            if t["id"] == task_id:
                items[i] = {**t, **fields}
                self._save(items)
                return items[i]
        raise NotFound("task not found")

    def delete(self, task_id: Any) -> None:
        items = self.list()
        kept = [t for t in items if t["id"] != task_id]
        if len(kept) == len(items):
            raise NotFound("task not found")
        self._save(kept)


class LocalProjectRepository:
    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def list(self) -> list[Record]:
        return list(self.storage.get_json(PROJECTS_KEY, []))

    def _save(self, items: list[Record]) -> None:
        self.storage.set_json(PROJECTS_KEY, items)

    def create(self, name: str, due: str | None = None, tasks: list[Record] | None = None) -> Record:
        rec = {
            "id": str(uuid.uuid4()),
            "name": clean_name(name),
            "due": due or None,
            "tasks": clean_subtasks(tasks or []),
        }
        self._save([*self.list(), rec])
        logger.debug("guest project created id=%s", rec["id"])
        return rec

    def update(self, project_id: Any, fields: Record) -> Record:
        fields = clean_project_fields(fields)

        items = self.list()
        for i, p in enumerate(items):
            if p["id"] == project_id:
                items[i] = {**p, **fields}
                self._save(items)
                return items[i]
        raise NotFound("project not found")

    def delete(self, project_id: Any) -> None:
        items = self.list()
        kept = [p for p in items if p["id"] != project_id]
        if len(kept) == len(items):
            raise NotFound("project not found")
        self._save(kept)


# ---- authenticated: REST API ----


class RemoteTaskRepository:
    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def list(self) -> list[Record]:
        return self.api.get("/tasks")

    def create(self, fields: Record) -> Record:
        return self.api.post("/tasks", fields)

    def update(self, task_id: Any, fields: Record) -> Record:
        return self.api.put(f"/tasks/{task_id}", fields)

    def delete(self, task_id: Any) -> None:
        self.api.delete(f"/tasks/{task_id}")


class RemoteProjectRepository:
    def __init__(self, api: ApiClient) -> None:
        self.api = api

    def list(self) -> list[Record]:
        return self.api.get("/projects")

    def create(self, name: str, due: str | None = None, tasks: list[Record] | None = None) -> Record:
        return self.api.post("/projects", {"name": name, "due": due, "tasks": tasks or []})

    def update(self, project_id: Any, fields: Record) -> Record:
        return self.api.put(f"/projects/{project_id}", fields)

    def delete(self, project_id: Any) -> None:
        self.api.delete(f"/projects/{project_id}")
