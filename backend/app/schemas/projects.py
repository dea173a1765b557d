from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.schemas.common import UtcDatetime

ProjectStatus = Literal["planning", "in-progress", "testing", "completed", "on-hold"]
ProjectPriority = Literal["low", "medium", "high", "critical"]
TeamRole = Literal["lead", "developer", "tester", "designer"]
MilestoneStatus = Literal["pending", "completed", "overdue"]


class ProjectCreate(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=1000)
    priority: ProjectPriority = "medium"
    tags: list[str] = Field(default_factory=list)
    end_date: UtcDatetime | None = None
    budget_allocated: float = Field(default=0, ge=0)


class ProjectUpdate(SQLModel):
    # progress is derived and intentionally absent.
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, min_length=1, max_length=1000)
    status: ProjectStatus | None = None
    priority: ProjectPriority | None = None
    tags: list[str] | None = None
    end_date: UtcDatetime | None = None
    budget_allocated: float | None = Field(default=None, ge=0)
    budget_spent: float | None = Field(default=None, ge=0)


class TeamMemberCreate(SQLModel):
    user_id: UUID
    role: TeamRole = "developer"


class TeamMemberRead(SQLModel):
    user_id: UUID
    role: str
    joined_at: datetime


class MilestoneCreate(SQLModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    due_date: UtcDatetime | None = None


class MilestoneRead(SQLModel):
    id: UUID
    project_id: UUID
    name: str
    description: str | None
    due_date: datetime | None
    status: str
    completed_at: datetime | None


class ProjectRead(SQLModel):
    id: UUID
    name: str
    description: str
    status: str
    priority: str
    start_date: datetime
    end_date: datetime | None
    owner_id: UUID
    progress: int
    tags: list[str]
    budget_allocated: float
    budget_spent: float
    created_at: datetime
    updated_at: datetime

    team: list[TeamMemberRead] = Field(default_factory=list)
    milestones: list[MilestoneRead] = Field(default_factory=list)
    duration_days: int | None = None
    remaining_budget: float = 0


class ActivityEventRead(SQLModel):
    id: UUID
    event_type: str
    message: str | None
    project_id: UUID | None
    task_id: UUID | None
    actor_id: UUID | None
    created_at: datetime
