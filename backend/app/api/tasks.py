from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, status
from fastapi_pagination.ext.sqlmodel import paginate
from sqlmodel import Session

from app.api.deps import AUTH_DEP, SERVICE_DEP, SESSION_DEP
from app.core.auth import AuthContext
from app.db.repository import tasks_statement
from app.models.tasks import Subtask, TaskComment
from app.schemas.common import OkResponse
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.tasks import (
    SubtaskCreate,
    SubtaskRead,
    TaskCommentCreate,
    TaskCommentRead,
    TaskCreate,
    TaskDetail,
    TaskRead,
    TaskStatus,
    TaskTransitions,
    TaskUpdate,
)
from app.services.task_status import TASK_STATUSES, allowed_targets
from app.services.work import WorkService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=DefaultLimitOffsetPage[TaskRead])
def list_tasks(
    project_id: UUID | None = Query(default=None),
    status_filter: TaskStatus | None = Query(default=None, alias="status"),
    session: Session = SESSION_DEP,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> DefaultLimitOffsetPage[TaskRead]:
    # Same scoping as WorkService.list_tasks, paginated in SQL.
    if project_id is None:
        statement = tasks_statement(involving_user_id=auth.user_id, status=status_filter)
    else:
        project = service.get_project(auth.user_id, project_id)
        statement = tasks_statement(project_id=project.id, status=status_filter)

    def _transform(items: Sequence[Any]) -> list[TaskRead]:
        return [service.task_read(task) for task in items]

    return paginate(session, statement, transformer=_transform)


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    return service.task_read(service.create_task(auth.user_id, payload))


@router.get("/{task_id}", response_model=TaskDetail)
def get_task(
    task_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskDetail:
    return service.task_detail(auth.user_id, task_id)


@router.get("/{task_id}/transitions", response_model=TaskTransitions)
def get_task_transitions(
    task_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskTransitions:
    task = service.get_task(auth.user_id, task_id)
    targets = allowed_targets(task.status)
    return TaskTransitions(
        status=task.status,
        allowed=[value for value in TASK_STATUSES if value in targets],
    )


@router.patch("/{task_id}", response_model=TaskRead)
def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    return service.task_read(service.update_task(auth.user_id, task_id, payload))


@router.delete("/{task_id}", response_model=OkResponse)
def delete_task(
    task_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    service.delete_task(auth.user_id, task_id)
    return OkResponse()


@router.get("/{task_id}/comments", response_model=list[TaskCommentRead])
def list_task_comments(
    task_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[TaskComment]:
    return service.list_comments(auth.user_id, task_id)


@router.post(
    "/{task_id}/comments",
    response_model=TaskCommentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_task_comment(
    task_id: UUID,
    payload: TaskCommentCreate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskComment:
    return service.add_comment(auth.user_id, task_id, payload.text)


@router.post(
    "/{task_id}/subtasks",
    response_model=SubtaskRead,
    status_code=status.HTTP_201_CREATED,
)
def create_subtask(
    task_id: UUID,
    payload: SubtaskCreate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Subtask:
    return service.add_subtask(auth.user_id, task_id, payload.title)


@router.patch("/{task_id}/subtasks/{subtask_id}", response_model=SubtaskRead)
def toggle_subtask(
    task_id: UUID,
    subtask_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Subtask:
    return service.toggle_subtask(auth.user_id, task_id, subtask_id)
