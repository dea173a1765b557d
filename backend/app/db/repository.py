"""Storage port used by the work service, and its SQLModel implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import Session, col, select
from sqlmodel.sql.expression import SelectOfScalar

from app.db import crud
from app.models.activity import ActivityEvent
from app.models.projects import Milestone, Project, ProjectMember
from app.models.tasks import Subtask, Task, TaskComment, TaskDependency
from app.models.users import User


def projects_for_user_statement(user_id: UUID) -> SelectOfScalar[Project]:
    """Projects the user owns or is a team member of, newest first."""
    member_project_ids = select(ProjectMember.project_id).where(
        col(ProjectMember.user_id) == user_id
    )
    return (
        select(Project)
        .where(
            or_(
                col(Project.owner_id) == user_id,
                col(Project.id).in_(member_project_ids),
            )
        )
        .order_by(col(Project.created_at).desc())
    )


def tasks_statement(
    *,
    project_id: UUID | None = None,
    involving_user_id: UUID | None = None,
    status: str | None = None,
) -> SelectOfScalar[Task]:
    statement = select(Task)
    if project_id is not None:
        statement = statement.where(col(Task.project_id) == project_id)
    if involving_user_id is not None:
        statement = statement.where(
            or_(
                col(Task.assignee_id) == involving_user_id,
                col(Task.reporter_id) == involving_user_id,
            )
        )
    if status is not None:
        statement = statement.where(col(Task.status) == status)
    return statement.order_by(col(Task.created_at).desc())


def activity_statement(project_id: UUID) -> SelectOfScalar[ActivityEvent]:
    return (
        select(ActivityEvent)
        .where(col(ActivityEvent.project_id) == project_id)
        .order_by(col(ActivityEvent.created_at).desc())
    )


class WorkRepository(ABC):
    """Load, save and delete the entities the work service mutates.

    Every ``save_*`` is a single atomic row write.
    """

    # Users
    @abstractmethod
    def get_user(self, user_id: UUID) -> User | None: ...

    # Projects
    @abstractmethod
    def get_project(self, project_id: UUID) -> Project | None: ...

    @abstractmethod
    def list_projects_for_user(self, user_id: UUID) -> list[Project]:
        """Projects the user owns or is a team member of."""

    @abstractmethod
    def save_project(self, project: Project) -> Project: ...

    @abstractmethod
    def delete_project(self, project: Project) -> None:
        """Delete the project with its members, milestones, tasks and activity."""

    # Team
    @abstractmethod
    def list_members(self, project_id: UUID) -> list[ProjectMember]: ...

    @abstractmethod
    def add_member(self, member: ProjectMember) -> ProjectMember: ...

    @abstractmethod
    def remove_member(self, member: ProjectMember) -> None: ...

    # Milestones
    @abstractmethod
    def list_milestones(self, project_id: UUID) -> list[Milestone]: ...

    @abstractmethod
    def get_milestone(self, milestone_id: UUID) -> Milestone | None: ...

    @abstractmethod
    def save_milestone(self, milestone: Milestone) -> Milestone: ...

    # Tasks
    @abstractmethod
    def get_task(self, task_id: UUID) -> Task | None: ...

    @abstractmethod
    def list_tasks(
        self,
        *,
        project_id: UUID | None = None,
        involving_user_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Task]:
        """Filter tasks; ``involving_user_id`` matches assignee or reporter."""

    @abstractmethod
    def list_task_statuses(self, project_id: UUID) -> list[str]: ...

    @abstractmethod
    def save_task(self, task: Task) -> Task: ...

    @abstractmethod
    def delete_task(self, task: Task) -> None:
        """Delete the task with its comments, subtasks and dependency rows."""

    # Comments and subtasks
    @abstractmethod
    def add_comment(self, comment: TaskComment) -> TaskComment: ...

    @abstractmethod
    def list_comments(self, task_id: UUID) -> list[TaskComment]: ...

    @abstractmethod
    def get_subtask(self, subtask_id: UUID) -> Subtask | None: ...

    @abstractmethod
    def save_subtask(self, subtask: Subtask) -> Subtask: ...

    @abstractmethod
    def list_subtasks(self, task_id: UUID) -> list[Subtask]: ...

    # Dependencies
    @abstractmethod
    def list_dependency_ids(self, task_id: UUID) -> list[UUID]: ...

    @abstractmethod
    def set_dependencies(self, task_id: UUID, depends_on_task_ids: Sequence[UUID]) -> None: ...

    # Activity
    @abstractmethod
    def record_activity(self, event: ActivityEvent) -> ActivityEvent: ...

    @abstractmethod
    def list_activity(self, project_id: UUID) -> list[ActivityEvent]:
        """Newest first."""


class SqlWorkRepository(WorkRepository):
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_user(self, user_id: UUID) -> User | None:
        return crud.get_by_id(self.session, User, user_id)

    def get_project(self, project_id: UUID) -> Project | None:
        return crud.get_by_id(self.session, Project, project_id)

    def list_projects_for_user(self, user_id: UUID) -> list[Project]:
        return list(self.session.exec(projects_for_user_statement(user_id)).all())

    def save_project(self, project: Project) -> Project:
        return crud.save(self.session, project)

    def delete_project(self, project: Project) -> None:
        task_ids = list(self.session.exec(select(Task.id).where(col(Task.project_id) == project.id)))
        if task_ids:
            self._delete_task_children(task_ids)
        crud.delete_where(self.session, ActivityEvent, col(ActivityEvent.project_id) == project.id)
        crud.delete_where(self.session, Task, col(Task.project_id) == project.id)
        crud.delete_where(self.session, Milestone, col(Milestone.project_id) == project.id)
        crud.delete_where(self.session, ProjectMember, col(ProjectMember.project_id) == project.id)
        self.session.delete(project)
        self.session.commit()

    def list_members(self, project_id: UUID) -> list[ProjectMember]:
        statement = (
            select(ProjectMember)
            .where(col(ProjectMember.project_id) == project_id)
            .order_by(col(ProjectMember.joined_at).asc())
        )
        return list(self.session.exec(statement).all())

    def add_member(self, member: ProjectMember) -> ProjectMember:
        return crud.save(self.session, member)

    def remove_member(self, member: ProjectMember) -> None:
        self.session.delete(member)
        self.session.commit()

    def list_milestones(self, project_id: UUID) -> list[Milestone]:
        statement = (
            select(Milestone)
            .where(col(Milestone.project_id) == project_id)
            .order_by(col(Milestone.due_date).asc())
        )
        return list(self.session.exec(statement).all())

    def get_milestone(self, milestone_id: UUID) -> Milestone | None:
        return crud.get_by_id(self.session, Milestone, milestone_id)

    def save_milestone(self, milestone: Milestone) -> Milestone:
        return crud.save(self.session, milestone)

    def get_task(self, task_id: UUID) -> Task | None:
        return crud.get_by_id(self.session, Task, task_id)

    def list_tasks(
        self,
        *,
        project_id: UUID | None = None,
        involving_user_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Task]:
        statement = tasks_statement(
            project_id=project_id,
            involving_user_id=involving_user_id,
            status=status,
        )
        return list(self.session.exec(statement).all())

    def list_task_statuses(self, project_id: UUID) -> list[str]:
        statement = select(Task.status).where(col(Task.project_id) == project_id)
        return list(self.session.exec(statement).all())

    def save_task(self, task: Task) -> Task:
        return crud.save(self.session, task)

    def delete_task(self, task: Task) -> None:
        self._delete_task_children([task.id])
        self.session.delete(task)
        self.session.commit()

    def _delete_task_children(self, task_ids: list[UUID]) -> None:
        crud.delete_where(self.session, TaskComment, col(TaskComment.task_id).in_(task_ids))
        crud.delete_where(self.session, Subtask, col(Subtask.task_id).in_(task_ids))
        crud.delete_where(
            self.session,
            TaskDependency,
            or_(
                col(TaskDependency.task_id).in_(task_ids),
                col(TaskDependency.depends_on_task_id).in_(task_ids),
            ),
        )
        crud.delete_where(self.session, ActivityEvent, col(ActivityEvent.task_id).in_(task_ids))

    def add_comment(self, comment: TaskComment) -> TaskComment:
        return crud.save(self.session, comment)

    def list_comments(self, task_id: UUID) -> list[TaskComment]:
        statement = (
            select(TaskComment)
            .where(col(TaskComment.task_id) == task_id)
            .order_by(col(TaskComment.created_at).asc())
        )
        return list(self.session.exec(statement).all())

    def get_subtask(self, subtask_id: UUID) -> Subtask | None:
        return crud.get_by_id(self.session, Subtask, subtask_id)

    def save_subtask(self, subtask: Subtask) -> Subtask:
        return crud.save(self.session, subtask)

    def list_subtasks(self, task_id: UUID) -> list[Subtask]:
        statement = (
            select(Subtask)
            .where(col(Subtask.task_id) == task_id)
            .order_by(col(Subtask.created_at).asc())
        )
        return list(self.session.exec(statement).all())

    def list_dependency_ids(self, task_id: UUID) -> list[UUID]:
        statement = select(TaskDependency.depends_on_task_id).where(
            col(TaskDependency.task_id) == task_id
        )
        return list(self.session.exec(statement).all())

    def set_dependencies(self, task_id: UUID, depends_on_task_ids: Sequence[UUID]) -> None:
        crud.delete_where(self.session, TaskDependency, col(TaskDependency.task_id) == task_id)
        for dep_id in depends_on_task_ids:
            self.session.add(TaskDependency(task_id=task_id, depends_on_task_id=dep_id))
        self.session.commit()

    def record_activity(self, event: ActivityEvent) -> ActivityEvent:
        return crud.save(self.session, event)

    def list_activity(self, project_id: UUID) -> list[ActivityEvent]:
        return list(self.session.exec(activity_statement(project_id)).all())
