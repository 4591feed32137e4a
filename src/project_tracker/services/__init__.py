from .activity import ActivityService
from .dashboard import DashboardService, DashboardSummary
from .projects import ProjectService, next_duplicate_name
from .registry import TrackerServices
from .reorder import ReorderEngine, midpoint_position
from .tasks import TaskService

__all__ = [
    "ActivityService",
    "DashboardService",
    "DashboardSummary",
    "ProjectService",
    "ReorderEngine",
    "TaskService",
    "TrackerServices",
    "midpoint_position",
    "next_duplicate_name",
]
