"""Aggregate statistics over the projects a user can see."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import case, func, or_
from sqlmodel import Session, col, select

from app.core.time import utcnow
from app.db.repository import SqlWorkRepository
from app.models.projects import Project, ProjectMember
from app.models.tasks import Task
from app.models.users import User
from app.schemas.stats import (
    ProjectStatusStat,
    Statistics,
    StatsFilters,
    TaskStatusStat,
    TimeRange,
    WorkloadStat,
)
from app.schemas.users import RoleCount, UserStats
from app.services.task_status import COMPLETED
from app.services.work import WorkService


def range_start(time_range: TimeRange, now: datetime) -> datetime:
    """Start of the window: rolling for day/week, calendar for month/year."""
    if time_range == "day":
        return now - timedelta(days=1)
    if time_range == "week":
        return now - timedelta(days=7)
    if time_range == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)


def accessible_project_ids(session: Session, user_id: UUID) -> list[UUID]:
    member_project_ids = select(ProjectMember.project_id).where(col(ProjectMember.user_id) == user_id)
    statement = select(Project.id).where(
        or_(col(Project.owner_id) == user_id, col(Project.id).in_(member_project_ids))
    )
    return list(session.exec(statement).all())


def _task_statistics(session: Session, project_ids: list[UUID], since: datetime) -> list[TaskStatusStat]:
    statement = (
        select(
            Task.status,
            func.count(col(Task.id)),
            func.avg(col(Task.estimated_hours)),
            func.avg(col(Task.actual_hours)),
        )
        .where(col(Task.project_id).in_(project_ids))
        .where(col(Task.created_at) >= since)
        .group_by(col(Task.status))
        .order_by(col(Task.status))
    )
    return [
        TaskStatusStat(
            status=status,
            count=count,
            avg_estimated_hours=avg_estimated,
            avg_actual_hours=avg_actual,
        )
        for status, count, avg_estimated, avg_actual in session.exec(statement).all()
    ]


def _project_statistics(session: Session, project_ids: list[UUID]) -> list[ProjectStatusStat]:
    statement = (
        select(
            Project.status,
            func.count(col(Project.id)),
            func.avg(col(Project.progress)),
            func.coalesce(func.sum(col(Project.budget_allocated)), 0),
            func.coalesce(func.sum(col(Project.budget_spent)), 0),
        )
        .where(col(Project.id).in_(project_ids))
        .group_by(col(Project.status))
        .order_by(col(Project.status))
    )
    return [
        ProjectStatusStat(
            status=status,
            count=count,
            avg_progress=avg_progress,
            total_budget=total_budget,
            total_spent=total_spent,
        )
        for status, count, avg_progress, total_budget, total_spent in session.exec(statement).all()
    ]


def _workload_statistics(session: Session, project_ids: list[UUID]) -> list[WorkloadStat]:
    task_count = func.count(col(Task.id))
    statement = (
        select(
            User.id,
            User.username,
            User.first_name,
            User.last_name,
            task_count,
            func.sum(case((col(Task.status) == COMPLETED, 1), else_=0)),
            func.coalesce(func.sum(col(Task.estimated_hours)), 0),
            func.coalesce(func.sum(col(Task.actual_hours)), 0),
        )
        .select_from(Task)
        .join(User, col(User.id) == col(Task.assignee_id))
        .where(col(Task.project_id).in_(project_ids))
        .group_by(col(User.id), col(User.username), col(User.first_name), col(User.last_name))
        .order_by(task_count.desc())
    )
    stats: list[WorkloadStat] = []
    for user_id, username, first, last, count, completed, estimated, actual in session.exec(statement).all():
        completed = completed or 0
        stats.append(
            WorkloadStat(
                user_id=user_id,
                username=username,
                first_name=first,
                last_name=last,
                task_count=count,
                completed_tasks=completed,
                completion_rate=(completed / count * 100) if count else 0,
                total_estimated_hours=estimated,
                total_actual_hours=actual,
                efficiency=(estimated / actual * 100) if actual else None,
            )
        )
    return stats


def build_statistics(
    session: Session,
    requester_id: UUID,
    *,
    project_id: UUID | None = None,
    time_range: TimeRange = "month",
    now: datetime | None = None,
) -> Statistics:
    if project_id is not None:
        WorkService(SqlWorkRepository(session)).get_project(requester_id, project_id)
        project_ids = [project_id]
    else:
        project_ids = accessible_project_ids(session, requester_id)
    since = range_start(time_range, now or utcnow())
    return Statistics(
        task_statistics=_task_statistics(session, project_ids, since),
        project_statistics=_project_statistics(session, project_ids),
        workload_statistics=_workload_statistics(session, project_ids),
        filters=StatsFilters(project_id=project_id, time_range=time_range),
    )


def user_statistics(session: Session) -> UserStats:
    statement = (
        select(User.role, func.count(col(User.id)))
        .where(col(User.is_active).is_(True))
        .group_by(col(User.role))
        .order_by(col(User.role))
    )
    roles = [RoleCount(role=role, count=count) for role, count in session.exec(statement).all()]
    return UserStats(total_users=sum(r.count for r in roles), role_distribution=roles)
