from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from app.core.time import utcnow


class ActivityEvent(SQLModel, table=True):
    __tablename__ = "activity_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_type: str = Field(index=True)
    message: str | None = None
    project_id: UUID | None = Field(default=None, foreign_key="projects.id", index=True)
    task_id: UUID | None = Field(default=None, foreign_key="tasks.id", index=True)
    actor_id: UUID | None = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow)
