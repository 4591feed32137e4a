"""Dashboard summary: counts, upcoming deadlines, recent activity and progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from ..constants import DASHBOARD_LIST_LIMIT, UPCOMING_WINDOW_DAYS
from ..domain.models import ActivityLog, Task
from ..storage.interfaces import ActivityRepository
from ..utils import _now
from .projects import ProjectService
from .tasks import TaskService


@dataclass
class DashboardSummary:
    totals: dict[str, int] = field(default_factory=dict)
    upcoming_tasks: list[Task] = field(default_factory=list)
    recent_activity: list[ActivityLog] = field(default_factory=list)
    project_progress: list[dict[str, Any]] = field(default_factory=list)

    def to_api(self) -> dict[str, Any]:
        return {
            "totals": dict(self.totals),
            "upcomingTasks": [t.to_api() for t in self.upcoming_tasks],
            "recentActivity": [a.to_api() for a in self.recent_activity],
            "projectProgress": [
                {
                    "projectId": p["project_id"],
                    "name": p["name"],
                    "total": p["total"],
                    "done": p["done"],
                    "percent": p["percent"],
                }
                for p in self.project_progress
            ],
        }


def upcoming(tasks: list[Task], now: datetime, days: int = UPCOMING_WINDOW_DAYS) -> list[Task]:
    """Tasks due between *now* and *now + days*, soonest first."""
    horizon = now + timedelta(days=days)
    due = [t for t in tasks if t.due_date is not None and now <= t.due_date <= horizon]
    return sorted(due, key=lambda t: t.due_date)  # type: ignore[arg-type,return-value]


class DashboardService:
    def __init__(self, projects: ProjectService, tasks: TaskService, activity: ActivityRepository) -> None:
        self._projects = projects
        self._tasks = tasks
        self._activity = activity

    def summary(self, owner_id: str, now: Optional[datetime] = None) -> DashboardSummary:
        now = now or _now()
        projects = self._projects.list_projects(owner_id)
        tasks = self._tasks.list_tasks(owner_id)
        totals = {
            "projects": len(projects),
            "completedProjects": sum(1 for p in projects if p.status == "completed"),
            "inProgressProjects": sum(1 for p in projects if p.status == "in_progress"),
            "tasks": len(tasks),
            "completedTasks": sum(1 for t in tasks if t.status == "done"),
            "inProgressTasks": sum(1 for t in tasks if t.status == "in_progress"),
        }
        return DashboardSummary(
            totals=totals,
            upcoming_tasks=upcoming(tasks, now)[:DASHBOARD_LIST_LIMIT],
            recent_activity=self._activity.list_recent(owner_id, DASHBOARD_LIST_LIMIT),
            project_progress=self._projects.project_progress(owner_id),
        )
