from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from app.core.time import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    first_name: str = ""
    last_name: str = ""
    role: str = Field(default="developer")  # admin | manager | developer | tester
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
