from __future__ import annotations

from sqlalchemy import JSON, BigInteger, Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)  # stored lowercased
    password_hash = Column(String(255), nullable=False)
    created_at = Column(BigInteger, nullable=False)  # unix seconds


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    due = Column(String(64), nullable=True)  # free-form, not parsed
    # embedded sub-tasks: [{"title": str, "done": bool}, ...]
    tasks = Column(JSON, nullable=False, default=list)


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    due_date = Column(String(32), nullable=True)  # YYYY-MM-DD
    labels = Column(JSON, nullable=False, default=list)
    priority = Column(String(8), nullable=False, default="medium")  # low|medium|high
    done = Column(Boolean, nullable=False, default=False)
    created_at = Column(BigInteger, nullable=False)  # unix seconds
