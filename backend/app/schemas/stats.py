from __future__ import annotations

from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

from app.schemas.projects import ProjectRead
from app.schemas.tasks import TaskRead
from app.schemas.users import UserRead

TimeRange = Literal["day", "week", "month", "year"]
SearchType = Literal["all", "tasks", "projects", "users"]


class TaskStatusStat(SQLModel):
    status: str
    count: int
    avg_estimated_hours: float | None = None
    avg_actual_hours: float | None = None


class ProjectStatusStat(SQLModel):
    status: str
    count: int
    avg_progress: float | None = None
    total_budget: float = 0
    total_spent: float = 0


class WorkloadStat(SQLModel):
    user_id: UUID
    username: str
    first_name: str
    last_name: str
    task_count: int
    completed_tasks: int
    completion_rate: float
    total_estimated_hours: float
    total_actual_hours: float
    efficiency: float | None = None


class StatsFilters(SQLModel):
    project_id: UUID | None = None
    time_range: TimeRange = "month"


class Statistics(SQLModel):
    task_statistics: list[TaskStatusStat] = Field(default_factory=list)
    project_statistics: list[ProjectStatusStat] = Field(default_factory=list)
    workload_statistics: list[WorkloadStat] = Field(default_factory=list)
    filters: StatsFilters


class SearchResults(SQLModel):
    tasks: list[TaskRead] | None = None
    projects: list[ProjectRead] | None = None
    users: list[UserRead] | None = None


class SearchResponse(SQLModel):
    query: str
    type: SearchType
    results: SearchResults
