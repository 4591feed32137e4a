"""Optimistic client-side state for task and project lists.

Every mutation is an :class:`OptimisticCommand`: the local list changes
first, the request follows, and the list is either reconciled with the
server's reply or rolled back. Records are the camelCase dicts the API
returns.
"""

from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from ..services.projects import next_duplicate_name
from ..services.reorder import midpoint_position
from .transport import ClientError, TrackerClient

Record = dict[str, Any]
Records = list[Record]


class Notifier(Protocol):
    def notify(self, title: str, description: str, variant: str = "default") -> None:
        ...


class LoggingNotifier:
    """Notifier that writes user-facing messages to the log."""

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        if variant == "destructive":
            logger.warning("{}: {}", title, description)
        else:
            logger.info("{}: {}", title, description)


@dataclass
class OptimisticCommand:
    """One local mutation paired with the request that persists it.

    ``forward`` and ``inverse`` are pure functions over the list. ``reconcile``
    folds the server response into the list after a successful request.
    """

    description: str
    forward: Callable[[Records], Records]
    inverse: Callable[[Records], Records]
    request: Callable[[], Any]
    reconcile: Optional[Callable[[Records, Any], Records]] = None


def _revision(record: Record) -> int:
    try:
        return int(record.get("revision") or 0)
    except (TypeError, ValueError):
        return 0


def replace_record(items: Records, record: Record, *, target_id: Optional[str] = None) -> Records:
    """Swap the record with *target_id* (default: ``record["id"]``) for *record*.

    A reply older than the local copy is dropped. Records missing from the
    list are not re-added.
    """
    target = target_id or record.get("id")
    out: Records = []
    for item in items:
        if item.get("id") != target:
            out.append(item)
        elif target_id is None and _revision(item) > _revision(record):
            logger.debug(
                "Ignoring stale reply for {} (revision {} < {})",
                target,
                _revision(record),
                _revision(item),
            )
            out.append(item)
        else:
            out.append(record)
    return out


def _patch_record(items: Records, record_id: str, changes: Record) -> Records:
    return [{**item, **changes} if item.get("id") == record_id else item for item in items]


def _remove_record(items: Records, record_id: str) -> Records:
    return [item for item in items if item.get("id") != record_id]


def _insert_record(items: Records, index: int, record: Record) -> Records:
    out = list(items)
    out.insert(min(index, len(out)), record)
    return out


def _restore_record(items: Records, snapshot: Record) -> Records:
    return [snapshot if item.get("id") == snapshot.get("id") else item for item in items]


def _temp_id() -> str:
    return f"temp-{uuid.uuid4().hex[:8]}"


class SyncedList:
    """A rendered list kept in step with the server through optimistic commands.

    Failures always roll back: the inverse is applied, the user is notified
    and the raw error is logged.
    """

    def __init__(self, notifier: Optional[Notifier] = None) -> None:
        self.items: Records = []
        self.notifier: Notifier = notifier or LoggingNotifier()

    def find(self, record_id: str) -> Optional[Record]:
        for item in self.items:
            if item.get("id") == record_id:
                return item
        return None

    def execute(self, command: OptimisticCommand) -> Any:
        """Apply *command*; return the server response, or None after a rollback."""
        optimistic = command.forward(self.items)
        self.items = optimistic
        try:
            response = command.request()
            if command.reconcile is not None:
                self.items = command.reconcile(self.items, response)
        except ClientError as exc:
            self._rollback(command, optimistic)
            logger.error("Failed to {} (status {}): {}", command.description, exc.status, exc.message)
            return None
        except Exception:
            self._rollback(command, optimistic)
            logger.exception("Failed to {}", command.description)
            raise
        return response

    def _rollback(self, command: OptimisticCommand, optimistic: Records) -> None:
        self.items = command.inverse(optimistic)
        self.notifier.notify("Error", f"Failed to {command.description}", "destructive")


class TaskBoard(SyncedList):
    """Tasks as shown on the list and kanban pages."""

    def __init__(self, client: TrackerClient, notifier: Optional[Notifier] = None) -> None:
        super().__init__(notifier)
        self.client = client

    def load(self, **filters: Any) -> Records:
        try:
            self.items = self.client.list_tasks(**filters)
        except ClientError as exc:
            logger.error("Failed to load tasks: {}", exc)
            self.notifier.notify("Error", "Failed to fetch tasks", "destructive")
        return self.items

    def lane(self, status: str) -> Records:
        """Tasks in one kanban column ordered by position."""
        return sorted(
            (item for item in self.items if item.get("status") == status),
            key=lambda item: item.get("kanbanPosition") or 0,
        )

    def create(self, fields: Record) -> Optional[Record]:
        temp_id = _temp_id()
        placeholder = {
            "status": "todo",
            "priority": "medium",
            "kanbanPosition": 0,
            **fields,
            "id": temp_id,
            "revision": 0,
        }
        created = self.execute(OptimisticCommand(
            description="create task",
            forward=lambda items: _insert_record(items, 0, placeholder),
            inverse=lambda items: _remove_record(items, temp_id),
            request=lambda: self.client.create_task(fields),
            reconcile=lambda items, record: replace_record(items, record, target_id=temp_id),
        ))
        if created is not None:
            self.notifier.notify("Success", "Task created successfully")
        return created

    def update(self, task_id: str, changes: Record) -> Optional[Record]:
        current = self.find(task_id)
        if current is None:
            raise KeyError(task_id)
        snapshot = copy.deepcopy(current)
        return self.execute(OptimisticCommand(
            description="update task",
            forward=lambda items: _patch_record(items, task_id, changes),
            inverse=lambda items: _restore_record(items, snapshot),
            request=lambda: self.client.update_task(task_id, changes, revision=snapshot.get("revision")),
            reconcile=replace_record,
        ))

    def toggle_status(self, task_id: str, done: bool) -> Optional[Record]:
        """Checkbox toggle: ``done`` or back to ``todo``."""
        return self.update(task_id, {"status": "done" if done else "todo"})

    def delete(self, task_id: str) -> bool:
        current = self.find(task_id)
        if current is None:
            raise KeyError(task_id)
        index = self.items.index(current)
        snapshot = copy.deepcopy(current)
        result = self.execute(OptimisticCommand(
            description="delete task",
            forward=lambda items: _remove_record(items, task_id),
            inverse=lambda items: _insert_record(items, index, snapshot),
            request=lambda: self.client.delete_task(task_id),
        ))
        if result is not None:
            self.notifier.notify("Success", "Task deleted successfully")
        return result is not None

    def move(self, task_id: str, status: str, index: int) -> Optional[Record]:
        """Drop *task_id* into lane *status* at *index* (0 is the top)."""
        current = self.find(task_id)
        if current is None:
            raise KeyError(task_id)
        lane = [item for item in self.lane(status) if item.get("id") != task_id]
        index = max(0, min(index, len(lane)))
        before = lane[index - 1].get("kanbanPosition") if index > 0 else None
        after = lane[index].get("kanbanPosition") if index < len(lane) else None
        position = midpoint_position(before, after)
        if position is None:
            # Equal neighbours: renumber the whole lane around the dropped card.
            ordered = lane[:index] + [current] + lane[index:]
            updates = [
                {"id": item["id"], "kanbanPosition": pos, "status": status}
                for pos, item in enumerate(ordered)
                if item.get("kanbanPosition") != pos or item.get("status") != status
            ]
        else:
            updates = [{"id": task_id, "kanbanPosition": position, "status": status}]
        snapshots = [copy.deepcopy(self.find(update["id"])) for update in updates]

        def _forward(items: Records) -> Records:
            for update in updates:
                items = _patch_record(items, update["id"], {"kanbanPosition": update["kanbanPosition"], "status": status})
            return items

        def _inverse(items: Records) -> Records:
            for snapshot in snapshots:
                items = _restore_record(items, snapshot)
            return items

        def _reconcile(items: Records, records: Records) -> Records:
            for record in records:
                items = replace_record(items, record)
            return items

        records = self.execute(OptimisticCommand(
            description="update task position",
            forward=_forward,
            inverse=_inverse,
            request=lambda: self.client.reorder_tasks(updates),
            reconcile=_reconcile,
        ))
        if records is None:
            return None
        return self.find(task_id)


class ProjectBoard(SyncedList):
    """Projects as shown on the project list page."""

    def __init__(self, client: TrackerClient, notifier: Optional[Notifier] = None) -> None:
        super().__init__(notifier)
        self.client = client

    def load(self, **filters: Any) -> Records:
        try:
            self.items = self.client.list_projects(**filters)
        except ClientError as exc:
            logger.error("Failed to load projects: {}", exc)
            self.notifier.notify("Error", "Failed to fetch projects", "destructive")
        return self.items

    def _create_with(self, description: str, placeholder: Record, request: Callable[[], Any]) -> Optional[Record]:
        temp_id = placeholder["id"]
        return self.execute(OptimisticCommand(
            description=description,
            forward=lambda items: _insert_record(items, 0, placeholder),
            inverse=lambda items: _remove_record(items, temp_id),
            request=request,
            reconcile=lambda items, record: replace_record(items, record, target_id=temp_id),
        ))

    def create(self, fields: Record) -> Optional[Record]:
        placeholder = {"status": "planning", **fields, "id": _temp_id(), "revision": 0}
        created = self._create_with("create project", placeholder, lambda: self.client.create_project(fields))
        if created is not None:
            self.notifier.notify("Success", "Project created successfully")
        return created

    def duplicate(self, project_id: str) -> Optional[Record]:
        source = self.find(project_id)
        if source is None:
            raise KeyError(project_id)
        name = next_duplicate_name(source.get("name") or "", [item.get("name") or "" for item in self.items])
        placeholder = {**copy.deepcopy(source), "name": name, "id": _temp_id(), "revision": 0}
        created = self._create_with(
            "duplicate project",
            placeholder,
            lambda: self.client.duplicate_project(project_id),
        )
        if created is not None:
            self.notifier.notify("Success", "Project duplicated successfully")
        return created

    def update(self, project_id: str, changes: Record) -> Optional[Record]:
        current = self.find(project_id)
        if current is None:
            raise KeyError(project_id)
        snapshot = copy.deepcopy(current)
        return self.execute(OptimisticCommand(
            description="update project",
            forward=lambda items: _patch_record(items, project_id, changes),
            inverse=lambda items: _restore_record(items, snapshot),
            request=lambda: self.client.update_project(project_id, changes, revision=snapshot.get("revision")),
            reconcile=replace_record,
        ))

    def delete(self, project_id: str) -> bool:
        current = self.find(project_id)
        if current is None:
            raise KeyError(project_id)
        index = self.items.index(current)
        snapshot = copy.deepcopy(current)
        result = self.execute(OptimisticCommand(
            description="delete project",
            forward=lambda items: _remove_record(items, project_id),
            inverse=lambda items: _insert_record(items, index, snapshot),
            request=lambda: self.client.delete_project(project_id),
        ))
        if result is not None:
            self.notifier.notify("Success", "Project deleted successfully")
        return result is not None
