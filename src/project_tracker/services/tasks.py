"""Ownership-checked task CRUD over the task repository.

Every read and write is scoped by the caller's owner id. A record owned by
someone else is reported exactly like a missing one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from loguru import logger

from ..constants import DEFAULT_TASK_PRIORITY, DEFAULT_TASK_STATUS, TASK_PRIORITIES, TASK_STATUSES
from ..domain.models import Project, Task
from ..domain.patch import TaskCreate, TaskPatch
from ..errors import NotFoundError, ValidationError
from ..storage.interfaces import OwnedRepository
from .common import (
    check_choice,
    check_position,
    check_sort,
    optional_text,
    parse_date,
    require_text,
)

TASK_SORTS = ("created", "updated", "title", "due_date", "priority")

_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _sort_tasks(tasks: list[Task], sort: Optional[str]) -> list[Task]:
    if sort == "updated":
        return sorted(tasks, key=lambda t: t.updated_at, reverse=True)
    if sort == "title":
        return sorted(tasks, key=lambda t: t.title.casefold())
    if sort == "due_date":
        return sorted(tasks, key=lambda t: t.due_date or _FAR_FUTURE)
    if sort == "priority":
        return sorted(tasks, key=lambda t: (_PRIORITY_RANK.get(t.priority, 99), t.created_at))
    return sorted(tasks, key=lambda t: t.created_at, reverse=True)


class TaskService:
    def __init__(self, tasks: OwnedRepository[Task], projects: OwnedRepository[Project]) -> None:
        self._tasks = tasks
        self._projects = projects

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_tasks(
        self,
        owner_id: str,
        *,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        project_id: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> list[Task]:
        """Return the owner's tasks, newest first unless *sort* says otherwise."""
        sort = check_sort(sort, TASK_SORTS)
        criteria: dict[str, Any] = {}
        if status:
            criteria["status"] = check_choice(status, TASK_STATUSES, "status")
        if priority:
            criteria["priority"] = check_choice(priority, TASK_PRIORITIES, "priority")
        if project_id:
            criteria["project_id"] = project_id
        tasks = self._tasks.find(owner_id, criteria)
        if search:
            q = search.lower()
            tasks = [
                t for t in tasks
                if q in t.title.lower() or q in (t.description or "").lower()
            ]
        return _sort_tasks(tasks, sort)

    def get_task(self, owner_id: str, task_id: str) -> Task:
        task = self._tasks.find_one(owner_id, task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def next_position(self, owner_id: str, status: str) -> Any:
        """Position one past the end of the owner's *status* lane."""
        lane = self._tasks.find(owner_id, {"status": status})
        if not lane:
            return 0
        return int(max(t.kanban_position for t in lane)) + 1

    def _require_owned_project(self, owner_id: str, project_id: str) -> None:
        if self._projects.find_one(owner_id, project_id) is None:
            raise NotFoundError("Project not found")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_task(self, owner_id: str, data: TaskCreate) -> Task:
        title = require_text(data.title, "title")
        if not data.project_id:
            raise ValidationError("projectId is required")
        status = check_choice(data.status or DEFAULT_TASK_STATUS, TASK_STATUSES, "status")
        priority = check_choice(data.priority or DEFAULT_TASK_PRIORITY, TASK_PRIORITIES, "priority")
        fields = {
            "title": title,
            "description": optional_text(data.description, "description"),
            "status": status,
            "priority": priority,
            "due_date": parse_date(data.due_date, "dueDate"),
            "project_id": data.project_id,
        }
        self._require_owned_project(owner_id, data.project_id)
        fields["kanban_position"] = self.next_position(owner_id, status)
        task = self._tasks.create(owner_id, fields)
        logger.info("Created task {} in project {} for {}", task.id, task.project_id, owner_id)
        return task

    def update_task(
        self,
        owner_id: str,
        task_id: str,
        patch: TaskPatch,
        *,
        expected_revision: Optional[int] = None,
    ) -> Task:
        current = self.get_task(owner_id, task_id)
        changes = patch.changes()
        values: dict[str, Any] = {}

        if "title" in changes:
            values["title"] = require_text(changes["title"], "title")
        if "description" in changes:
            values["description"] = optional_text(changes["description"], "description")
        if "status" in changes:
            values["status"] = check_choice(changes["status"], TASK_STATUSES, "status")
        if "priority" in changes:
            values["priority"] = check_choice(changes["priority"], TASK_PRIORITIES, "priority")
        if "due_date" in changes:
            values["due_date"] = parse_date(changes["due_date"], "dueDate")
        if "project_id" in changes:
            project_id = changes["project_id"] or None
            if project_id is not None:
                self._require_owned_project(owner_id, project_id)
            values["project_id"] = project_id
        if "kanban_position" in changes:
            values["kanban_position"] = check_position(changes["kanban_position"])
        elif values.get("status", current.status) != current.status:
            values["kanban_position"] = self.next_position(owner_id, values["status"])

        if not values:
            return current

        count = self._tasks.update_many(owner_id, task_id, values, expected_revision=expected_revision)
        if count == 0:
            raise NotFoundError("Task not found")
        logger.debug("Updated task {} fields {}", task_id, sorted(values))
        return self.get_task(owner_id, task_id)

    def set_status(self, owner_id: str, task_id: str, done: bool) -> Task:
        """Checkbox toggle: ``done`` when checked, back to ``todo`` otherwise."""
        return self.update_task(owner_id, task_id, TaskPatch(status="done" if done else "todo"))

    def delete_task(self, owner_id: str, task_id: str) -> None:
        if self._tasks.delete_many(owner_id, task_id) == 0:
            raise NotFoundError("Task not found")
        logger.info("Deleted task {} for {}", task_id, owner_id)
