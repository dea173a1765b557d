"""Project access predicates.

Pure functions over already-loaded entities; nothing here touches storage.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from app.models.projects import Project, ProjectMember
    from app.models.tasks import Task

LEAD_ROLE = "lead"


@dataclass(frozen=True, slots=True)
class ProjectTeam:
    """Owner plus the team as a mapping of user id to role."""

    owner_id: UUID
    roles: Mapping[UUID, str] = field(default_factory=dict)

    @classmethod
    def of(cls, project: Project, members: Iterable[ProjectMember]) -> ProjectTeam:
        return cls(
            owner_id=project.owner_id,
            roles=MappingProxyType({member.user_id: member.role for member in members}),
        )


def has_project_access(user_id: UUID, team: ProjectTeam) -> bool:
    return user_id == team.owner_id or user_id in team.roles


def is_project_admin(user_id: UUID, team: ProjectTeam) -> bool:
    return user_id == team.owner_id or team.roles.get(user_id) == LEAD_ROLE


def can_delete_project(user_id: UUID, team: ProjectTeam) -> bool:
    return user_id == team.owner_id


def can_delete_task(user_id: UUID, team: ProjectTeam, task: Task) -> bool:
    # Leads do not get this right; only the owner and the task's reporter.
    return user_id == team.owner_id or user_id == task.reporter_id
