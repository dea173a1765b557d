from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from app.core.time import utcnow


class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(index=True)
    description: str
    status: str = Field(default="planning")
    priority: str = Field(default="medium")
    start_date: datetime = Field(default_factory=utcnow)
    end_date: datetime | None = None

    # The owner has exclusive authority (deletion); leads share everything else.
    owner_id: UUID = Field(foreign_key="users.id", index=True)

    # Derived from task statuses; only the progress recalculation writes it.
    progress: int = Field(default=0)

    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    budget_allocated: float = Field(default=0)
    budget_spent: float = Field(default=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_id_user_id"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    role: str = Field(default="developer")  # lead | developer | tester | designer
    joined_at: datetime = Field(default_factory=utcnow)


class Milestone(SQLModel, table=True):
    __tablename__ = "milestones"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    name: str
    description: str | None = None
    due_date: datetime | None = None
    status: str = Field(default="pending")  # pending | completed | overdue
    completed_at: datetime | None = None
