from app.models.activity import ActivityEvent
from app.models.projects import Milestone, Project, ProjectMember
from app.models.tasks import Subtask, Task, TaskComment, TaskDependency
from app.models.users import User

__all__ = [
    "User",
    "Project",
    "ProjectMember",
    "Milestone",
    "Task",
    "TaskComment",
    "Subtask",
    "TaskDependency",
    "ActivityEvent",
]
