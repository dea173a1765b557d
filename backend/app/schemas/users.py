from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from sqlmodel import Field, SQLModel

UserRole = Literal["admin", "manager", "developer", "tester"]


class UserCreate(SQLModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=254)
    first_name: str = ""
    last_name: str = ""
    role: UserRole = "developer"


class UserRead(SQLModel):
    id: UUID
    username: str
    email: str
    first_name: str
    last_name: str
    role: str
    is_active: bool
    created_at: datetime


class RoleCount(SQLModel):
    role: str
    count: int


class UserStats(SQLModel):
    total_users: int
    role_distribution: list[RoleCount]
