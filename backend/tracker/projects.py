"""Project store. Each project embeds an ordered list of {title, done} sub-tasks."""
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import NotFound, ValidationFailure
from .models import Project
from .schemas import ProjectOut, SubTask

logger = logging.getLogger(__name__)

PROJECT_FIELDS = {"name", "due", "tasks"}


def project_out(p: Project) -> ProjectOut:
    return ProjectOut(
        id=int(p.id),
        name=p.name,
        due=p.due,
        tasks=[SubTask(**t) for t in (p.tasks or [])],
    )


def clean_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationFailure("project name is required")
    return name


def clean_subtasks(tasks: list[Any]) -> list[dict[str, Any]]:
    out = []
    for t in tasks:
        try:
            st = t if isinstance(t, SubTask) else SubTask.model_validate(t)
        except PydanticValidationError:
            raise ValidationFailure("invalid task entry") from None
        title = st.title.strip()
        if not title:
            raise ValidationFailure("task title is required")
        out.append({"title": title, "done": bool(st.done)})
    return out


def _owned(s: Session, owner_id: int, project_id: int) -> Project:
    p = s.get(Project, project_id)
    if p is None or int(p.owner_id) != int(owner_id):
        raise NotFound("project not found")
    return p


def list_projects(s: Session, owner_id: int) -> list[ProjectOut]:
    rows = s.execute(select(Project).where(Project.owner_id == owner_id).order_by(Project.id.asc())).scalars().all()
    return [project_out(p) for p in rows]


def get_project(s: Session, owner_id: int, project_id: int) -> ProjectOut:
    return project_out(_owned(s, owner_id, project_id))


def create_project(s: Session, owner_id: int, name: str, due: str | None = None, tasks: list[Any] | None = None) -> ProjectOut:
    p = Project(owner_id=owner_id, name=clean_name(name), due=due or None, tasks=clean_subtasks(tasks or []))
    s.add(p)
    s.commit()
    s.refresh(p)
    logger.info("project created id=%s owner=%s", p.id, owner_id)
    return project_out(p)


def clean_project_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Validate and normalise a partial project update without applying it."""
    unknown = set(fields) - PROJECT_FIELDS
    if unknown:
        raise ValidationFailure(f"unknown project fields: {', '.join(sorted(unknown))}")

    clean: dict[str, Any] = {}
    if "name" in fields:
        clean["name"] = clean_name(fields["name"])
    if "due" in fields:
        clean["due"] = fields["due"] or None
    if "tasks" in fields:
        # new list object so the JSON column is flagged dirty
        clean["tasks"] = clean_subtasks(fields["tasks"] or [])
    return clean


def update_project(s: Session, owner_id: int, project_id: int, fields: dict[str, Any]) -> ProjectOut:
    """Merge the given fields into the project. A given task list replaces the old one."""
    p = _owned(s, owner_id, project_id)
    clean = clean_project_fields(fields)

    for key, value in clean.items():
        setattr(p, key, value)

    s.add(p)
    s.commit()
    s.refresh(p)
    logger.info("project updated id=%s fields=%s", p.id, sorted(fields))
    return project_out(p)


def delete_project(s: Session, owner_id: int, project_id: int) -> None:
    p = _owned(s, owner_id, project_id)
    s.delete(p)
    s.commit()
    logger.info("project deleted id=%s", project_id)
