"""Per-user task store."""
from __future__ import annotations

import logging
import time
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import NotFound, ValidationFailure
from .models import Task
from .schemas import TaskOut

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high")
TASK_FIELDS = {"title", "description", "due_date", "labels", "priority", "done"}


def task_out(t: Task) -> TaskOut:
    return TaskOut(
        id=int(t.id),
        title=t.title,
        description=t.description,
        due_date=t.due_date,
        labels=list(t.labels or []),
        priority=str(t.priority or "medium"),
        done=bool(t.done),
        created_at=int(t.created_at),
    )


def clean_title(title: str | None) -> str:
    title = (title or "").strip()
    if not title:
        raise ValidationFailure("title is required")
    return title


def clean_priority(priority: str | None) -> str:
    pr = (priority or "medium").strip().lower()
    if pr not in PRIORITIES:
        raise ValidationFailure("priority must be low|medium|high")
    return pr


def clean_labels(labels: list[str] | None) -> list[str]:
    out: list[str] = []
    for label in labels or []:
        label = str(label).strip()
        if label and label not in out:
            out.append(label)
    return out


def _owned(s: Session, user_id: int, task_id: int) -> Task:
    t = s.get(Task, task_id)
    if t is None or int(t.user_id) != int(user_id):
        raise NotFound("task not found")
    return t


def list_tasks(s: Session, user_id: int) -> list[TaskOut]:
    rows = s.execute(select(Task).where(Task.user_id == user_id).order_by(Task.id.desc())).scalars().all()
    return [task_out(t) for t in rows]


def get_task(s: Session, user_id: int, task_id: int) -> TaskOut:
    return task_out(_owned(s, user_id, task_id))


def create_task(s: Session, user_id: int, fields: dict[str, Any]) -> TaskOut:
    t = Task(
        user_id=user_id,
        title=clean_title(fields.get("title")),
        description=fields.get("description") or None,
        due_date=fields.get("due_date") or None,
        labels=clean_labels(fields.get("labels")),
        priority=clean_priority(fields.get("priority")),
        done=bool(fields.get("done", False)),
        created_at=int(time.time()),
    )
    s.add(t)
    s.commit()
    s.refresh(t)
    logger.info("task created id=%s user=%s", t.id, user_id)
    return task_out(t)


def clean_task_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalise a partial task update without applying it."""
    unknown = set(fields) - TASK_FIELDS
    if unknown:
        raise ValidationFailure(f"unknown task fields: {', '.join(sorted(unknown))}")

    clean: dict[str, Any] = {}
    if "title" in fields:
        clean["title"] = clean_title(fields["title"])
    if "description" in fields:
        clean["description"] = fields["description"] or None
    if "due_date" in fields:
        clean["due_date"] = fields["due_date"] or None
    if "labels" in fields:
        clean["labels"] = clean_labels(fields["labels"])
    if "priority" in fields:
        clean["priority"] = clean_priority(fields["priority"])
    if "done" in fields:
        clean["done"] = bool(fields["done"])
    return clean


def update_task(s: Session, user_id: int, task_id: int, fields: dict[str, Any]) -> TaskOut:
    t = _owned(s, user_id, task_id)
    clean = clean_task_fields(fields)

    for key, value in clean.items():
        setattr(t, key, value)

    s.add(t)
    s.commit()
    s.refresh(t)
    return task_out(t)


def delete_task(s: Session, user_id: int, task_id: int) -> None:
    t = _owned(s, user_id, task_id)
    s.delete(t)
    s.commit()
    logger.info("task deleted id=%s user=%s", task_id, user_id)
