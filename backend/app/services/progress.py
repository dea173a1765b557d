from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from app.core.logging import get_logger
from app.services.task_status import COMPLETED

if TYPE_CHECKING:
    from app.db.repository import WorkRepository
    from app.models.projects import Project

logger = get_logger(__name__)


def compute_progress(statuses: Iterable[str]) -> int:
    """Percentage of completed tasks, rounded half up; 0 when there are none."""
    total = 0
    completed = 0
    for status in statuses:
        total += 1
        if status == COMPLETED:
            completed += 1
    if total == 0:
        return 0
    # Integer form of round(100 * completed / total) with halves rounding up.
    return (200 * completed + total) // (2 * total)


def recalculate_progress(repository: WorkRepository, project: Project) -> int:
    """Recompute ``project.progress`` from its tasks and persist it."""
    progress = compute_progress(repository.list_task_statuses(project.id))
    if progress != project.progress:
        logger.info(
            "project.progress.updated project_id=%s old=%s new=%s",
            project.id,
            project.progress,
            progress,
        )
    project.progress = progress
    repository.save_project(project)
    return progress
