from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.schemas.common import UtcDatetime

TaskStatus = Literal["todo", "in-progress", "review", "testing", "completed", "blocked"]
TaskPriority = Literal["low", "medium", "high", "urgent"]
TaskType = Literal["feature", "bug", "improvement", "documentation", "testing"]


class TaskCreate(SQLModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    project_id: UUID
    assignee_id: UUID | None = None
    priority: TaskPriority = "medium"
    type: TaskType = "feature"
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    due_date: UtcDatetime | None = None
    tags: list[str] = Field(default_factory=list)
    depends_on_task_ids: list[UUID] = Field(default_factory=list)


class TaskUpdate(SQLModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, min_length=1)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: UUID | None = None
    estimated_hours: float | None = Field(default=None, ge=0, le=1000)
    actual_hours: float | None = Field(default=None, ge=0)
    due_date: UtcDatetime | None = None
    tags: list[str] | None = None
    depends_on_task_ids: list[UUID] | None = None


class TaskRead(SQLModel):
    id: UUID
    title: str
    description: str
    project_id: UUID
    assignee_id: UUID | None
    reporter_id: UUID
    status: str
    priority: str
    type: str
    estimated_hours: float | None
    actual_hours: float | None
    due_date: datetime | None
    completed_date: datetime | None
    tags: list[str]
    created_at: datetime
    updated_at: datetime

    depends_on_task_ids: list[UUID] = Field(default_factory=list)


class TaskCommentCreate(SQLModel):
    text: str = Field(min_length=1, max_length=5000)


class TaskCommentRead(SQLModel):
    id: UUID
    task_id: UUID
    author_id: UUID
    text: str
    created_at: datetime


class SubtaskCreate(SQLModel):
    title: str = Field(min_length=1, max_length=200)


class SubtaskRead(SQLModel):
    id: UUID
    task_id: UUID
    title: str
    completed: bool
    created_at: datetime


class TaskDetail(TaskRead):
    comments: list[TaskCommentRead] = Field(default_factory=list)
    subtasks: list[SubtaskRead] = Field(default_factory=list)


class TaskTransitions(SQLModel):
    status: str
    allowed: list[str]
