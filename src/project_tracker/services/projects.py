"""Project CRUD, duplicate-with-suffix naming and per-project progress."""

from __future__ import annotations

import re
from typing import Any, Iterable, Optional, Union

from loguru import logger

from ..constants import DEFAULT_PROJECT_STATUS, PROJECT_STATUSES
from ..domain.models import Project, Task
from ..domain.patch import ProjectCreate, ProjectPatch
from ..errors import NotFoundError, ValidationError
from ..storage.interfaces import OwnedRepository
from .common import check_choice, check_sort, optional_text, parse_date, require_text

PROJECT_SORTS = ("name", "status", "created", "updated")

_SUFFIX_RE = re.compile(r"\((\d+)\)$")


def next_duplicate_name(name: str, existing_names: Iterable[str]) -> str:
    """Name for a copy of *name*: ``"{base} (N)"`` with N one past the highest suffix in use.

    The base is *name* with any trailing ``"(N)"`` removed. Every existing name
    that starts with the base contributes its own trailing suffix, if any. A
    name that is nothing but a suffix keeps it as the base.
    """
    base = _SUFFIX_RE.sub("", name).strip() or name.strip()
    highest = 0
    for existing in existing_names:
        if not existing.startswith(base):
            continue
        match = _SUFFIX_RE.search(existing)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{base} ({highest + 1})"


def _sort_projects(projects: list[Project], sort: Optional[str]) -> list[Project]:
    if sort == "name":
        return sorted(projects, key=lambda p: p.name.casefold())
    if sort == "status":
        return sorted(projects, key=lambda p: p.status)
    if sort == "updated":
        return sorted(projects, key=lambda p: p.updated_at, reverse=True)
    return sorted(projects, key=lambda p: p.created_at, reverse=True)


def _check_date_order(start: Any, end: Any) -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError("endDate cannot be before startDate")


class ProjectService:
    def __init__(self, projects: OwnedRepository[Project], tasks: OwnedRepository[Task]) -> None:
        self._projects = projects
        self._tasks = tasks

    def list_projects(
        self,
        owner_id: str,
        *,
        status: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> list[Project]:
        sort = check_sort(sort, PROJECT_SORTS)
        criteria: dict[str, Any] = {}
        if status:
            criteria["status"] = check_choice(status, PROJECT_STATUSES, "status")
        projects = self._projects.find(owner_id, criteria)
        if search:
            q = search.lower()
            projects = [p for p in projects if q in p.name.lower()]
        return _sort_projects(projects, sort)

    def get_project(self, owner_id: str, project_id: str) -> Project:
        project = self._projects.find_one(owner_id, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def create_project(self, owner_id: str, data: ProjectCreate) -> Project:
        fields = {
            "name": require_text(data.name, "name"),
            "description": optional_text(data.description, "description"),
            "status": check_choice(data.status or DEFAULT_PROJECT_STATUS, PROJECT_STATUSES, "status"),
            "color": optional_text(data.color, "color"),
            "start_date": parse_date(data.start_date, "startDate"),
            "end_date": parse_date(data.end_date, "endDate"),
        }
        _check_date_order(fields["start_date"], fields["end_date"])
        project = self._projects.create(owner_id, fields)
        logger.info("Created project {} ({}) for {}", project.id, project.name, owner_id)
        return project

    def update_project(
        self,
        owner_id: str,
        project_id: str,
        patch: ProjectPatch,
        *,
        expected_revision: Optional[int] = None,
    ) -> Project:
        current = self.get_project(owner_id, project_id)
        changes = patch.changes()
        values: dict[str, Any] = {}

        if "name" in changes:
            values["name"] = require_text(changes["name"], "name")
        if "description" in changes:
            values["description"] = optional_text(changes["description"], "description")
        if "status" in changes:
            values["status"] = check_choice(changes["status"], PROJECT_STATUSES, "status")
        if "color" in changes:
            values["color"] = optional_text(changes["color"], "color")
        if "start_date" in changes:
            values["start_date"] = parse_date(changes["start_date"], "startDate")
        if "end_date" in changes:
            values["end_date"] = parse_date(changes["end_date"], "endDate")
        _check_date_order(values.get("start_date", current.start_date), values.get("end_date", current.end_date))

        if not values:
            return current

        count = self._projects.update_many(owner_id, project_id, values, expected_revision=expected_revision)
        if count == 0:
            raise NotFoundError("Project not found")
        return self.get_project(owner_id, project_id)

    def delete_project(self, owner_id: str, project_id: str) -> None:
        """Delete the project only. Its tasks keep their now-dangling ``project_id``."""
        if self._projects.delete_many(owner_id, project_id) == 0:
            raise NotFoundError("Project not found")
        orphaned = len(self._tasks.find(owner_id, {"project_id": project_id}))
        logger.info("Deleted project {} for {} ({} tasks left unassigned)", project_id, owner_id, orphaned)

    def duplicate_project(self, owner_id: str, project: Union[Project, str]) -> Project:
        """Copy a project's fields (not its tasks) under a disambiguated name."""
        if isinstance(project, str):
            source = self.get_project(owner_id, project)
        elif project.owner_id != owner_id:
            raise NotFoundError("Project not found")
        else:
            source = project

        existing = [p.name for p in self._projects.find(owner_id)]
        copy = self._projects.create(owner_id, {
            "name": require_text(next_duplicate_name(source.name, existing), "name"),
            "description": source.description,
            "status": source.status,
            "color": source.color,
            "start_date": source.start_date,
            "end_date": source.end_date,
        })
        logger.info("Duplicated project {} as {} ({})", source.id, copy.id, copy.name)
        return copy

    def project_progress(self, owner_id: str) -> list[dict[str, Any]]:
        """Completed/total task counts per project, in project list order."""
        tasks = self._tasks.find(owner_id)
        progress = []
        for project in self.list_projects(owner_id):
            mine = [t for t in tasks if t.project_id == project.id]
            done = sum(1 for t in mine if t.status == "done")
            progress.append({
                "project_id": project.id,
                "name": project.name,
                "total": len(mine),
                "done": done,
                "percent": round(done / len(mine) * 100, 1) if mine else 0.0,
            })
        return progress
