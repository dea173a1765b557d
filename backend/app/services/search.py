from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import String, cast, or_
from sqlmodel import Session, col, select

from app.db.repository import SqlWorkRepository
from app.models.projects import Project
from app.models.tasks import Task
from app.models.users import User
from app.schemas.stats import SearchResponse, SearchResults, SearchType
from app.schemas.users import UserRead
from app.services.errors import ValidationError
from app.services.statistics import accessible_project_ids
from app.services.work import WorkService


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _ilike(expression: Any, pattern: str) -> Any:
    return expression.ilike(pattern, escape="\\")


def search(
    session: Session,
    requester_id: UUID,
    query: str,
    *,
    search_type: SearchType = "all",
    limit: int = 20,
) -> SearchResponse:
    """Case-insensitive substring search scoped to the requester's projects."""
    q = query.strip()
    if not q:
        raise ValidationError("Search query is required")
    pattern = _like_pattern(q)

    service = WorkService(SqlWorkRepository(session))
    project_ids = accessible_project_ids(session, requester_id)
    results = SearchResults()

    if search_type in ("all", "tasks"):
        statement = (
            select(Task)
            .where(col(Task.project_id).in_(project_ids))
            .where(
                or_(
                    _ilike(col(Task.title), pattern),
                    _ilike(col(Task.description), pattern),
                    _ilike(cast(col(Task.tags), String), pattern),
                )
            )
            .order_by(col(Task.created_at).desc())
            .limit(limit)
        )
        results.tasks = [service.task_read(task) for task in session.exec(statement).all()]

    if search_type in ("all", "projects"):
        statement = (
            select(Project)
            .where(col(Project.id).in_(project_ids))
            .where(
                or_(
                    _ilike(col(Project.name), pattern),
                    _ilike(col(Project.description), pattern),
                    _ilike(cast(col(Project.tags), String), pattern),
                )
            )
            .order_by(col(Project.created_at).desc())
            .limit(limit)
        )
        results.projects = [service.project_read(project) for project in session.exec(statement).all()]

    if search_type in ("all", "users"):
        statement = (
            select(User)
            .where(col(User.is_active).is_(True))
            .where(
                or_(
                    _ilike(col(User.username), pattern),
                    _ilike(col(User.first_name), pattern),
                    _ilike(col(User.last_name), pattern),
                    _ilike(col(User.email), pattern),
                )
            )
            .order_by(col(User.username))
            .limit(limit)
        )
        results.users = [UserRead.model_validate(user, from_attributes=True) for user in session.exec(statement).all()]

    return SearchResponse(query=q, type=search_type, results=results)
