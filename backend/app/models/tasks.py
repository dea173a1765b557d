from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.core.time import utcnow


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    assignee_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    reporter_id: UUID = Field(foreign_key="users.id", index=True)

    status: str = Field(default="todo", index=True)
    priority: str = Field(default="medium")
    type: str = Field(default="feature")

    estimated_hours: float | None = None
    actual_hours: float | None = None
    due_date: datetime | None = None
    # Set exactly while status == "completed".
    completed_date: datetime | None = None

    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TaskComment(SQLModel, table=True):
    __tablename__ = "task_comments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    author_id: UUID = Field(foreign_key="users.id")
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class Subtask(SQLModel, table=True):
    __tablename__ = "subtasks"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    title: str
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


class TaskDependency(SQLModel, table=True):
    __tablename__ = "task_dependencies"
    __table_args__ = (
        UniqueConstraint("task_id", "depends_on_task_id", name="uq_task_dependencies_pair"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    depends_on_task_id: UUID = Field(foreign_key="tasks.id", index=True)
