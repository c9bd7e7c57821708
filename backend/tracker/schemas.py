from __future__ import annotations

from pydantic import BaseModel, Field


class AuthIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    id: int
    email: str


class AuthOut(BaseModel):
    user: UserOut
    token: str


class SubTask(BaseModel):
    title: str
    done: bool = False


class ProjectCreate(BaseModel):
    name: str
    due: str | None = None
    tasks: list[SubTask] = Field(default_factory=list)


# partial update: only fields present in the body are applied
class ProjectUpdate(BaseModel):
    name: str | None = None
    due: str | None = None
    tasks: list[SubTask] | None = None


class ProjectOut(BaseModel):
    id: int
    name: str
    due: str | None = None
    tasks: list[SubTask]


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    due_date: str | None = None
    labels: list[str] = Field(default_factory=list)
    priority: str = "medium"  # low|medium|high
    done: bool = False


class TaskUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    labels: list[str] | None = None
    priority: str | None = None
    done: bool | None = None


class TaskOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    due_date: str | None = None
    labels: list[str]
    priority: str
    done: bool
    created_at: int
