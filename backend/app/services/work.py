"""Project and task mutations.

Every operation authorizes the requester against the owning project, runs all
checks that can fail, and only then writes. Task writes that can move a
project's completion (create, status change, delete) are followed by a
progress recalculation; that second write is not transactional with the first.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db.repository import WorkRepository
from app.models.activity import ActivityEvent
from app.models.projects import Milestone, Project, ProjectMember
from app.models.tasks import Subtask, Task, TaskComment
from app.models.users import User
from app.schemas.projects import (
    MilestoneCreate,
    MilestoneRead,
    ProjectCreate,
    ProjectRead,
    ProjectUpdate,
    TeamMemberRead,
)
from app.schemas.tasks import (
    SubtaskRead,
    TaskCommentRead,
    TaskCreate,
    TaskDetail,
    TaskRead,
    TaskUpdate,
)
from app.services.access import (
    LEAD_ROLE,
    ProjectTeam,
    can_delete_project,
    can_delete_task,
    has_project_access,
    is_project_admin,
)
from app.services.errors import (
    DuplicateMemberError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.services.progress import recalculate_progress
from app.services.task_status import INITIAL_STATUS, attempt_transition, can_transition

logger = get_logger(__name__)

DEFAULT_MEMBER_ROLE = "developer"

# Columns that a patch may not null out; an explicit null is ignored.
_PROJECT_REQUIRED_FIELDS = frozenset(
    {"name", "description", "status", "priority", "tags", "budget_allocated", "budget_spent"}
)
_TASK_REQUIRED_FIELDS = frozenset({"title", "description", "status", "priority", "tags"})


def _required_text(value: str, field_name: str) -> str:
    text = value.strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


def _clean_tags(tags: Sequence[str]) -> list[str]:
    return [tag.strip() for tag in tags if tag and tag.strip()]


def _drop_nulls(data: dict[str, Any], required: frozenset[str]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None or key not in required}


class WorkService:
    def __init__(self, repository: WorkRepository) -> None:
        self.repository = repository

    # ------------------------------------------------------------------
    # Loading and authorization
    # ------------------------------------------------------------------

    def _require_user(self, user_id: UUID, entity: str = "User") -> User:
        user = self.repository.get_user(user_id)
        if user is None or not user.is_active:
            raise NotFoundError(entity)
        return user

    def _require_project(self, project_id: UUID) -> Project:
        project = self.repository.get_project(project_id)
        if project is None:
            raise NotFoundError("Project")
        return project

    def _require_task(self, task_id: UUID) -> Task:
        task = self.repository.get_task(task_id)
        if task is None:
            raise NotFoundError("Task")
        return task

    def team(self, project: Project) -> ProjectTeam:
        return ProjectTeam.of(project, self.repository.list_members(project.id))

    def _require_access(self, requester_id: UUID, project: Project) -> ProjectTeam:
        team = self.team(project)
        if not has_project_access(requester_id, team):
            logger.info("access.denied user_id=%s project_id=%s", requester_id, project.id)
            raise ForbiddenError()
        return team

    def _require_admin(self, requester_id: UUID, project: Project) -> ProjectTeam:
        team = self.team(project)
        if not is_project_admin(requester_id, team):
            logger.info("admin.denied user_id=%s project_id=%s", requester_id, project.id)
            raise ForbiddenError("Only the project owner or a team lead can do this")
        return team

    def _task_with_access(self, requester_id: UUID, task_id: UUID) -> tuple[Task, Project]:
        task = self._require_task(task_id)
        project = self._require_project(task.project_id)
        self._require_access(requester_id, project)
        return task, project

    def _record(
        self,
        event_type: str,
        *,
        actor_id: UUID,
        project_id: UUID | None = None,
        task_id: UUID | None = None,
        message: str | None = None,
    ) -> None:
        self.repository.record_activity(
            ActivityEvent(
                event_type=event_type,
                message=message,
                project_id=project_id,
                task_id=task_id,
                actor_id=actor_id,
            )
        )

    def _recalculate(self, project: Project) -> int:
        try:
            return recalculate_progress(self.repository, project)
        except Exception:
            # The task write already happened; the next trigger will converge.
            logger.exception("project.progress.failed project_id=%s", project.id)
            raise

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, requester_id: UUID, payload: ProjectCreate) -> Project:
        project = Project(
            name=_required_text(payload.name, "Project name"),
            description=_required_text(payload.description, "Project description"),
            priority=payload.priority,
            tags=_clean_tags(payload.tags),
            end_date=payload.end_date,
            budget_allocated=payload.budget_allocated,
            owner_id=requester_id,
        )
        project = self.repository.save_project(project)
        self.repository.add_member(
            ProjectMember(project_id=project.id, user_id=requester_id, role=LEAD_ROLE)
        )
        self._record(
            "project.created",
            actor_id=requester_id,
            project_id=project.id,
            message=f"Project created: {project.name}.",
        )
        logger.info("project.created project_id=%s owner_id=%s", project.id, requester_id)
        return project

    def get_project(self, requester_id: UUID, project_id: UUID) -> Project:
        project = self._require_project(project_id)
        self._require_access(requester_id, project)
        return project

    def list_projects(self, requester_id: UUID) -> list[Project]:
        return self.repository.list_projects_for_user(requester_id)

    def update_project(self, requester_id: UUID, project_id: UUID, payload: ProjectUpdate) -> Project:
        project = self._require_project(project_id)
        self._require_admin(requester_id, project)

        updates = _drop_nulls(payload.model_dump(exclude_unset=True), _PROJECT_REQUIRED_FIELDS)
        if "name" in updates:
            updates["name"] = _required_text(updates["name"], "Project name")
        if "description" in updates:
            updates["description"] = _required_text(updates["description"], "Project description")
        if "tags" in updates:
            updates["tags"] = _clean_tags(updates["tags"])

        for key, value in updates.items():
            setattr(project, key, value)
        project.updated_at = utcnow()
        project = self.repository.save_project(project)
        self._record(
            "project.updated",
            actor_id=requester_id,
            project_id=project.id,
            message=f"Updated fields: {', '.join(sorted(updates)) or 'none'}.",
        )
        logger.info("project.updated project_id=%s fields=%s", project.id, sorted(updates))
        return project

    def delete_project(self, requester_id: UUID, project_id: UUID) -> None:
        project = self._require_project(project_id)
        if not can_delete_project(requester_id, self.team(project)):
            raise ForbiddenError("Only the project owner can delete the project")
        self.repository.delete_project(project)
        logger.info("project.deleted project_id=%s actor_id=%s", project_id, requester_id)

    def add_team_member(
        self,
        requester_id: UUID,
        project_id: UUID,
        user_id: UUID,
        role: str = DEFAULT_MEMBER_ROLE,
    ) -> Project:
        project = self._require_project(project_id)
        team = self._require_admin(requester_id, project)
        self._require_user(user_id)
        if user_id in team.roles:
            raise DuplicateMemberError()

        self.repository.add_member(
            ProjectMember(project_id=project.id, user_id=user_id, role=role or DEFAULT_MEMBER_ROLE)
        )
        self._record(
            "project.member_added",
            actor_id=requester_id,
            project_id=project.id,
            message=f"User {user_id} joined as {role}.",
        )
        logger.info("project.member_added project_id=%s user_id=%s role=%s", project.id, user_id, role)
        return project

    def remove_team_member(self, requester_id: UUID, project_id: UUID, user_id: UUID) -> Project:
        project = self._require_project(project_id)
        self._require_admin(requester_id, project)
        if user_id == project.owner_id:
            raise ValidationError("The project owner cannot be removed from the team")
        member = next(
            (m for m in self.repository.list_members(project.id) if m.user_id == user_id),
            None,
        )
        if member is None:
            raise NotFoundError("Team member")

        self.repository.remove_member(member)
        self._record(
            "project.member_removed",
            actor_id=requester_id,
            project_id=project.id,
            message=f"User {user_id} left the team.",
        )
        logger.info("project.member_removed project_id=%s user_id=%s", project.id, user_id)
        return project

    def add_milestone(self, requester_id: UUID, project_id: UUID, payload: MilestoneCreate) -> Milestone:
        project = self._require_project(project_id)
        self._require_admin(requester_id, project)
        milestone = self.repository.save_milestone(
            Milestone(
                project_id=project.id,
                name=_required_text(payload.name, "Milestone name"),
                description=payload.description,
                due_date=payload.due_date,
            )
        )
        self._record(
            "milestone.created",
            actor_id=requester_id,
            project_id=project.id,
            message=f"Milestone created: {milestone.name}.",
        )
        return milestone

    def complete_milestone(self, requester_id: UUID, project_id: UUID, milestone_id: UUID) -> Milestone:
        project = self._require_project(project_id)
        self._require_admin(requester_id, project)
        milestone = self.repository.get_milestone(milestone_id)
        if milestone is None or milestone.project_id != project.id:
            raise NotFoundError("Milestone")
        if milestone.status == "completed":
            return milestone

        milestone.status = "completed"
        milestone.completed_at = utcnow()
        milestone = self.repository.save_milestone(milestone)
        self._record(
            "milestone.completed",
            actor_id=requester_id,
            project_id=project.id,
            message=f"Milestone completed: {milestone.name}.",
        )
        return milestone

    def list_project_activity(self, requester_id: UUID, project_id: UUID) -> list[ActivityEvent]:
        project = self._require_project(project_id)
        self._require_access(requester_id, project)
        return self.repository.list_activity(project.id)

    def project_read(self, project: Project) -> ProjectRead:
        duration_days = None
        if project.end_date is not None:
            seconds = (project.end_date - project.start_date).total_seconds()
            duration_days = math.ceil(seconds / 86400)
        return ProjectRead.model_validate(project, from_attributes=True).model_copy(
            update={
                "team": [
                    TeamMemberRead(user_id=m.user_id, role=m.role, joined_at=m.joined_at)
                    for m in self.repository.list_members(project.id)
                ],
                "milestones": [
                    MilestoneRead.model_validate(m, from_attributes=True)
                    for m in self.repository.list_milestones(project.id)
                ],
                "duration_days": duration_days,
                "remaining_budget": project.budget_allocated - project.budget_spent,
            }
        )

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def _validate_dependencies(
        self,
        project_id: UUID,
        task_id: UUID | None,
        depends_on_task_ids: Sequence[UUID],
    ) -> list[UUID]:
        normalized: list[UUID] = []
        for dep_id in depends_on_task_ids:
            if dep_id in normalized:
                continue
            if task_id is not None and dep_id == task_id:
                raise ValidationError("A task cannot depend on itself")
            dependency = self.repository.get_task(dep_id)
            if dependency is None or dependency.project_id != project_id:
                raise ValidationError(f"Dependency {dep_id} is not a task of this project")
            normalized.append(dep_id)
        return normalized

    def create_task(self, requester_id: UUID, payload: TaskCreate) -> Task:
        title = _required_text(payload.title, "Task title")
        description = _required_text(payload.description, "Task description")
        project = self._require_project(payload.project_id)
        self._require_access(requester_id, project)
        if payload.assignee_id is not None:
            self._require_user(payload.assignee_id, "Assignee")
        dependencies = self._validate_dependencies(project.id, None, payload.depends_on_task_ids)

        task = Task(
            title=title,
            description=description,
            project_id=project.id,
            reporter_id=requester_id,
            assignee_id=payload.assignee_id or requester_id,
            status=INITIAL_STATUS,
            priority=payload.priority,
            type=payload.type,
            estimated_hours=payload.estimated_hours,
            due_date=payload.due_date,
            tags=_clean_tags(payload.tags),
        )
        task = self.repository.save_task(task)
        if dependencies:
            self.repository.set_dependencies(task.id, dependencies)
        self._record(
            "task.created",
            actor_id=requester_id,
            project_id=project.id,
            task_id=task.id,
            message=f"Task created: {task.title}.",
        )
        logger.info("task.created task_id=%s project_id=%s reporter_id=%s", task.id, project.id, requester_id)
        self._recalculate(project)
        return task

    def get_task(self, requester_id: UUID, task_id: UUID) -> Task:
        task, _project = self._task_with_access(requester_id, task_id)
        return task

    def list_tasks(
        self,
        requester_id: UUID,
        *,
        project_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Task]:
        if project_id is None:
            return self.repository.list_tasks(involving_user_id=requester_id, status=status)
        project = self._require_project(project_id)
        self._require_access(requester_id, project)
        return self.repository.list_tasks(project_id=project.id, status=status)

    def update_task(self, requester_id: UUID, task_id: UUID, payload: TaskUpdate) -> Task:
        task, project = self._task_with_access(requester_id, task_id)

        updates = _drop_nulls(payload.model_dump(exclude_unset=True), _TASK_REQUIRED_FIELDS)
        new_status = updates.pop("status", None)
        depends_on = updates.pop("depends_on_task_ids", None)
        if "title" in updates:
            updates["title"] = _required_text(updates["title"], "Task title")
        if "description" in updates:
            updates["description"] = _required_text(updates["description"], "Task description")
        if "tags" in updates:
            updates["tags"] = _clean_tags(updates["tags"])
        if updates.get("assignee_id") is not None:
            self._require_user(updates["assignee_id"], "Assignee")
        dependencies = None
        if depends_on is not None:
            dependencies = self._validate_dependencies(project.id, task.id, depends_on)

        previous_status = task.status
        if new_status is not None and not can_transition(previous_status, new_status):
            logger.warning(
                "task.transition.rejected task_id=%s current=%s requested=%s",
                task.id,
                previous_status,
                new_status,
            )
            raise InvalidTransitionError(previous_status, new_status)

        for key, value in updates.items():
            setattr(task, key, value)
        if new_status is not None:
            attempt_transition(task, new_status)
        task.updated_at = utcnow()
        # Status and completed_date go out in this single row write.
        task = self.repository.save_task(task)
        if dependencies is not None:
            self.repository.set_dependencies(task.id, dependencies)

        status_changed = new_status is not None
        if status_changed:
            self._record(
                "task.status_changed",
                actor_id=requester_id,
                project_id=project.id,
                task_id=task.id,
                message=f"Status changed: {previous_status} -> {task.status}.",
            )
            logger.info(
                "task.status_changed task_id=%s from=%s to=%s", task.id, previous_status, task.status
            )
            self._recalculate(project)
        else:
            self._record(
                "task.updated",
                actor_id=requester_id,
                project_id=project.id,
                task_id=task.id,
                message=f"Updated fields: {', '.join(sorted(updates)) or 'none'}.",
            )
        return task

    def delete_task(self, requester_id: UUID, task_id: UUID) -> None:
        task = self._require_task(task_id)
        project = self._require_project(task.project_id)
        if not can_delete_task(requester_id, self.team(project), task):
            raise ForbiddenError("Only the project owner or the task reporter can delete the task")

        title = task.title
        self.repository.delete_task(task)
        self._record(
            "task.deleted",
            actor_id=requester_id,
            project_id=project.id,
            message=f"Task deleted: {title}.",
        )
        logger.info("task.deleted task_id=%s project_id=%s", task_id, project.id)
        self._recalculate(project)

    def add_comment(self, requester_id: UUID, task_id: UUID, text: str) -> TaskComment:
        task, project = self._task_with_access(requester_id, task_id)
        comment = self.repository.add_comment(
            TaskComment(task_id=task.id, author_id=requester_id, text=_required_text(text, "Comment text"))
        )
        self._record(
            "task.commented",
            actor_id=requester_id,
            project_id=project.id,
            task_id=task.id,
        )
        return comment

    def list_comments(self, requester_id: UUID, task_id: UUID) -> list[TaskComment]:
        task, _project = self._task_with_access(requester_id, task_id)
        return self.repository.list_comments(task.id)

    def add_subtask(self, requester_id: UUID, task_id: UUID, title: str) -> Subtask:
        task, _project = self._task_with_access(requester_id, task_id)
        return self.repository.save_subtask(
            Subtask(task_id=task.id, title=_required_text(title, "Subtask title"))
        )

    def toggle_subtask(self, requester_id: UUID, task_id: UUID, subtask_id: UUID) -> Subtask:
        task, _project = self._task_with_access(requester_id, task_id)
        subtask = self.repository.get_subtask(subtask_id)
        if subtask is None or subtask.task_id != task.id:
            raise NotFoundError("Subtask")
        subtask.completed = not subtask.completed
        return self.repository.save_subtask(subtask)

    def task_read(self, task: Task) -> TaskRead:
        return TaskRead.model_validate(task, from_attributes=True).model_copy(
            update={"depends_on_task_ids": self.repository.list_dependency_ids(task.id)}
        )

    def task_detail(self, requester_id: UUID, task_id: UUID) -> TaskDetail:
        task = self.get_task(requester_id, task_id)
        read = self.task_read(task)
        return TaskDetail(
            **read.model_dump(),
            comments=[
                TaskCommentRead.model_validate(c, from_attributes=True)
                for c in self.repository.list_comments(task.id)
            ],
            subtasks=[
                SubtaskRead.model_validate(s, from_attributes=True)
                for s in self.repository.list_subtasks(task.id)
            ],
        )
