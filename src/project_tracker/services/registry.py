from __future__ import annotations

from dataclasses import dataclass

from ..storage.container import Container
from .activity import ActivityService
from .dashboard import DashboardService
from .projects import ProjectService
from .reorder import ReorderEngine
from .tasks import TaskService


@dataclass
class TrackerServices:
    container: Container
    projects: ProjectService
    tasks: TaskService
    reorder: ReorderEngine
    activity: ActivityService
    dashboard: DashboardService

    @classmethod
    def from_container(cls, container: Container) -> "TrackerServices":
        projects = ProjectService(container.projects, container.tasks)
        tasks = TaskService(container.tasks, container.projects)
        return cls(
            container=container,
            projects=projects,
            tasks=tasks,
            reorder=ReorderEngine(container.tasks),
            activity=ActivityService(container.activity),
            dashboard=DashboardService(projects, tasks, container.activity),
        )
