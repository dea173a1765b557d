# tests/fakes.py

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from app.db.repository import WorkRepository
from app.models.activity import ActivityEvent
from app.models.projects import Milestone, Project, ProjectMember
from app.models.tasks import Subtask, Task, TaskComment, TaskDependency
from app.models.users import User


class InMemoryWorkRepository(WorkRepository):
    """Dict-backed WorkRepository for service tests.

    Saved objects are stored by reference, so assertions can inspect them
    directly. ``writes`` counts every save/delete call.
    """

    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}
        self.projects: dict[UUID, Project] = {}
        self.members: dict[UUID, ProjectMember] = {}
        self.milestones: dict[UUID, Milestone] = {}
        self.tasks: dict[UUID, Task] = {}
        self.comments: list[TaskComment] = []
        self.subtasks: dict[UUID, Subtask] = {}
        self.dependencies: list[TaskDependency] = []
        self.activity: list[ActivityEvent] = []
        self.writes = 0

    def add_user(self, username: str, *, role: str = "developer", is_active: bool = True) -> User:
        user = User(username=username, email=f"{username}@example.com", role=role, is_active=is_active)
        self.users[user.id] = user
        return user

    def get_user(self, user_id: UUID) -> User | None:
        return self.users.get(user_id)

    def get_project(self, project_id: UUID) -> Project | None:
        return self.projects.get(project_id)

    def list_projects_for_user(self, user_id: UUID) -> list[Project]:
        member_of = {m.project_id for m in self.members.values() if m.user_id == user_id}
        return [p for p in self.projects.values() if p.owner_id == user_id or p.id in member_of]

    def save_project(self, project: Project) -> Project:
        self.writes += 1
        self.projects[project.id] = project
        return project

    def delete_project(self, project: Project) -> None:
        self.writes += 1
        for task in [t for t in self.tasks.values() if t.project_id == project.id]:
            self._drop_task(task.id)
        self.members = {k: m for k, m in self.members.items() if m.project_id != project.id}
        self.milestones = {k: m for k, m in self.milestones.items() if m.project_id != project.id}
        self.activity = [e for e in self.activity if e.project_id != project.id]
        del self.projects[project.id]

    def list_members(self, project_id: UUID) -> list[ProjectMember]:
        return [m for m in self.members.values() if m.project_id == project_id]

    def add_member(self, member: ProjectMember) -> ProjectMember:
        self.writes += 1
        self.members[member.id] = member
        return member

    def remove_member(self, member: ProjectMember) -> None:
        self.writes += 1
        del self.members[member.id]

    def list_milestones(self, project_id: UUID) -> list[Milestone]:
        return [m for m in self.milestones.values() if m.project_id == project_id]

    def get_milestone(self, milestone_id: UUID) -> Milestone | None:
        return self.milestones.get(milestone_id)

    def save_milestone(self, milestone: Milestone) -> Milestone:
        self.writes += 1
        self.milestones[milestone.id] = milestone
        return milestone

    def get_task(self, task_id: UUID) -> Task | None:
        return self.tasks.get(task_id)

    def list_tasks(
        self,
        *,
        project_id: UUID | None = None,
        involving_user_id: UUID | None = None,
        status: str | None = None,
    ) -> list[Task]:
        tasks = list(self.tasks.values())
        if project_id is not None:
            tasks = [t for t in tasks if t.project_id == project_id]
        if involving_user_id is not None:
            tasks = [
                t for t in tasks if involving_user_id in (t.assignee_id, t.reporter_id)
            ]
        if status is not None:
            tasks = [t for t in tasks if t.status == status]
        return tasks

    def list_task_statuses(self, project_id: UUID) -> list[str]:
        return [t.status for t in self.tasks.values() if t.project_id == project_id]

    def save_task(self, task: Task) -> Task:
        self.writes += 1
        self.tasks[task.id] = task
        return task

    def delete_task(self, task: Task) -> None:
        self.writes += 1
        self._drop_task(task.id)

    def _drop_task(self, task_id: UUID) -> None:
        self.tasks.pop(task_id, None)
        self.comments = [c for c in self.comments if c.task_id != task_id]
        self.subtasks = {k: s for k, s in self.subtasks.items() if s.task_id != task_id}
        self.dependencies = [
            d for d in self.dependencies if task_id not in (d.task_id, d.depends_on_task_id)
        ]
        self.activity = [e for e in self.activity if e.task_id != task_id]

    def add_comment(self, comment: TaskComment) -> TaskComment:
        self.writes += 1
        self.comments.append(comment)
        return comment

    def list_comments(self, task_id: UUID) -> list[TaskComment]:
        return [c for c in self.comments if c.task_id == task_id]

    def get_subtask(self, subtask_id: UUID) -> Subtask | None:
        return self.subtasks.get(subtask_id)

    def save_subtask(self, subtask: Subtask) -> Subtask:
        self.writes += 1
        self.subtasks[subtask.id] = subtask
        return subtask

    def list_subtasks(self, task_id: UUID) -> list[Subtask]:
        return [s for s in self.subtasks.values() if s.task_id == task_id]

    def list_dependency_ids(self, task_id: UUID) -> list[UUID]:
        return [d.depends_on_task_id for d in self.dependencies if d.task_id == task_id]

    def set_dependencies(self, task_id: UUID, depends_on_task_ids: Sequence[UUID]) -> None:
        self.writes += 1
        self.dependencies = [d for d in self.dependencies if d.task_id != task_id]
        self.dependencies.extend(
            TaskDependency(task_id=task_id, depends_on_task_id=dep_id) for dep_id in depends_on_task_ids
        )

    def record_activity(self, event: ActivityEvent) -> ActivityEvent:
        self.activity.append(event)
        return event

    def list_activity(self, project_id: UUID) -> list[ActivityEvent]:
        return [e for e in reversed(self.activity) if e.project_id == project_id]


class FailingProgressRepository(InMemoryWorkRepository):
    """Fails any project save after the first ``allowed_project_saves``."""

    def __init__(self, allowed_project_saves: int = 1) -> None:
        super().__init__()
        self.allowed_project_saves = allowed_project_saves

    def save_project(self, project: Project) -> Project:
        if self.allowed_project_saves <= 0:
            raise RuntimeError("storage unavailable")
        self.allowed_project_saves -= 1
        return super().save_project(project)
