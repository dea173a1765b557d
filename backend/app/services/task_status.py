"""Task status workflow.

``attempt_transition`` is the only place a task's status changes. It also keeps
``completed_date`` in step with the status so both land in the same row write.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Final

from app.core.time import utcnow

if TYPE_CHECKING:
    from app.models.tasks import Task

TODO: Final = "todo"
IN_PROGRESS: Final = "in-progress"
REVIEW: Final = "review"
TESTING: Final = "testing"
COMPLETED: Final = "completed"
BLOCKED: Final = "blocked"

TASK_STATUSES: Final[tuple[str, ...]] = (TODO, IN_PROGRESS, REVIEW, TESTING, COMPLETED, BLOCKED)
INITIAL_STATUS: Final = TODO

# No self-loops: setting a task to its current status is rejected.
ALLOWED_TRANSITIONS: Final[dict[str, frozenset[str]]] = {
    TODO: frozenset({IN_PROGRESS, BLOCKED}),
    IN_PROGRESS: frozenset({REVIEW, TESTING, BLOCKED, TODO}),
    REVIEW: frozenset({TESTING, IN_PROGRESS, TODO}),
    TESTING: frozenset({COMPLETED, IN_PROGRESS, TODO}),
    COMPLETED: frozenset({TODO, IN_PROGRESS}),
    BLOCKED: frozenset({TODO, IN_PROGRESS}),
}


def allowed_targets(status: str) -> frozenset[str]:
    return ALLOWED_TRANSITIONS.get(status, frozenset())


def can_transition(current: str, target: str) -> bool:
    return target in allowed_targets(current)


def attempt_transition(task: Task, new_status: str, *, now: datetime | None = None) -> bool:
    """Move ``task`` to ``new_status`` if the workflow allows it.

    Returns False and leaves the task untouched otherwise. On success the
    completion date is stamped when entering ``completed`` (kept if already
    set) and cleared when leaving it.
    """
    if not can_transition(task.status, new_status):
        return False
    task.status = new_status
    if new_status == COMPLETED:
        if task.completed_date is None:
            task.completed_date = now or utcnow()
    else:
        task.completed_date = None
    return True
