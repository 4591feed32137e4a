from .models import ActivityLog, Project, Task, User
from .patch import UNSET, ProjectCreate, ProjectPatch, ReorderItem, TaskCreate, TaskPatch

__all__ = [
    "ActivityLog",
    "Project",
    "Task",
    "User",
    "UNSET",
    "ProjectCreate",
    "ProjectPatch",
    "ReorderItem",
    "TaskCreate",
    "TaskPatch",
]
