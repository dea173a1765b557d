from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from fastapi_pagination.ext.sqlmodel import paginate
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from app.api.deps import AUTH_DEP, SERVICE_DEP, SESSION_DEP
from app.core.auth import AuthContext
from app.db.repository import activity_statement, projects_for_user_statement
from app.models.projects import Milestone
from app.schemas.common import OkResponse
from app.schemas.pagination import DefaultLimitOffsetPage
from app.schemas.projects import (
    ActivityEventRead,
    MilestoneCreate,
    MilestoneRead,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    TeamMemberCreate,
)
from app.services.work import WorkService

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("", response_model=DefaultLimitOffsetPage[ProjectRead])
def list_projects(
    session: Session = SESSION_DEP,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> DefaultLimitOffsetPage[ProjectRead]:
    def _transform(items: Sequence[Any]) -> list[ProjectRead]:
        return [service.project_read(project) for project in items]

    return paginate(session, projects_for_user_statement(auth.user_id), transformer=_transform)


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
def create_project(
    payload: ProjectCreate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    project = service.create_project(auth.user_id, payload)
    return service.project_read(project)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    return service.project_read(service.get_project(auth.user_id, project_id))


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    return service.project_read(service.update_project(auth.user_id, project_id, payload))


@router.delete("/{project_id}", response_model=OkResponse)
def delete_project(
    project_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> OkResponse:
    service.delete_project(auth.user_id, project_id)
    return OkResponse()


@router.post(
    "/{project_id}/members",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
)
def add_team_member(
    project_id: UUID,
    payload: TeamMemberCreate,
    session: Session = SESSION_DEP,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    try:
        project = service.add_team_member(auth.user_id, project_id, payload.user_id, payload.role)
    except IntegrityError:
        # Lost a race with a concurrent add; the unique constraint caught it.
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a team member",
        ) from None
    return service.project_read(project)


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectRead)
def remove_team_member(
    project_id: UUID,
    user_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    return service.project_read(service.remove_team_member(auth.user_id, project_id, user_id))


@router.post(
    "/{project_id}/milestones",
    response_model=MilestoneRead,
    status_code=status.HTTP_201_CREATED,
)
def add_milestone(
    project_id: UUID,
    payload: MilestoneCreate,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Milestone:
    return service.add_milestone(auth.user_id, project_id, payload)


@router.post("/{project_id}/milestones/{milestone_id}/complete", response_model=MilestoneRead)
def complete_milestone(
    project_id: UUID,
    milestone_id: UUID,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Milestone:
    return service.complete_milestone(auth.user_id, project_id, milestone_id)


@router.get("/{project_id}/activity", response_model=DefaultLimitOffsetPage[ActivityEventRead])
def list_project_activity(
    project_id: UUID,
    session: Session = SESSION_DEP,
    service: WorkService = SERVICE_DEP,
    auth: AuthContext = AUTH_DEP,
) -> DefaultLimitOffsetPage[ActivityEventRead]:
    project = service.get_project(auth.user_id, project_id)

    def _transform(items: Sequence[Any]) -> list[ActivityEventRead]:
        return [ActivityEventRead.model_validate(item, from_attributes=True) for item in items]

    return paginate(session, activity_statement(project.id), transformer=_transform)
