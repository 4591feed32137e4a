"""Repository decorator that appends one activity entry per successful mutation."""

from __future__ import annotations

from typing import Any, Generic, Mapping, Optional, TypeVar

from loguru import logger

from ..domain.models import ActivityLog
from ..logging_utils import summarize_activity
from .interfaces import ActivityRepository, OwnedRepository

R = TypeVar("R")

_MOVE_FIELDS = {"kanban_position", "status"}


def _label(record: Any) -> str:
    return str(getattr(record, "title", None) or getattr(record, "name", None) or getattr(record, "id", ""))


class AuditedRepository(OwnedRepository[R], Generic[R]):
    """Wrap a project or task repository with activity logging.

    Logging is fire-and-forget: if appending the entry fails, the error is
    logged and the primary mutation still stands.
    """

    def __init__(self, inner: OwnedRepository[R], activity: ActivityRepository, entity: str) -> None:
        if entity not in {"project", "task"}:
            raise ValueError(f"Unsupported entity: {entity}")
        self._inner = inner
        self._activity = activity
        self._entity = entity

    def _links(self, record: Any) -> dict[str, Optional[str]]:
        if self._entity == "project":
            return {"project_id": getattr(record, "id", None), "task_id": None}
        return {"project_id": getattr(record, "project_id", None), "task_id": getattr(record, "id", None)}

    def _record(self, owner_id: str, action: str, details: str, record: Any) -> None:
        try:
            entry = ActivityLog(action=action, details=details, owner_id=owner_id, **self._links(record))
            self._activity.append(entry)
            logger.debug("Recorded activity {}", summarize_activity(entry))
        except Exception:
            logger.exception("Failed to append activity {} for {}", action, getattr(record, "id", "?"))

    def find(self, owner_id: str, filter: Optional[Mapping[str, Any]] = None) -> list[R]:
        return self._inner.find(owner_id, filter)

    def find_one(self, owner_id: str, record_id: str) -> Optional[R]:
        return self._inner.find_one(owner_id, record_id)

    def create(self, owner_id: str, fields: Mapping[str, Any]) -> R:
        record = self._inner.create(owner_id, fields)
        self._record(owner_id, f"{self._entity}.created", f"Created {self._entity} '{_label(record)}'", record)
        return record

    def update_many(
        self,
        owner_id: str,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        expected_revision: Optional[int] = None,
    ) -> int:
        before = self._inner.find_one(owner_id, record_id) if "status" in fields else None
        count = self._inner.update_many(owner_id, record_id, fields, expected_revision=expected_revision)
        if count:
            try:
                record = self._inner.find_one(owner_id, record_id)
            except Exception:
                logger.exception("Failed to reload {} {} for activity", self._entity, record_id)
                return count
            status_changed = before is not None and getattr(before, "status", None) != fields["status"]
            if "kanban_position" in fields and set(fields) <= _MOVE_FIELDS and not status_changed:
                action = f"{self._entity}.moved"
                details = f"Moved {self._entity} '{_label(record)}' within {getattr(record, 'status', '')}"
            elif status_changed:
                action = f"{self._entity}.status_changed"
                details = f"Changed {self._entity} '{_label(record)}' status to {fields['status']}"
            else:
                action = f"{self._entity}.updated"
                details = f"Updated {self._entity} '{_label(record)}': {', '.join(sorted(fields)) or 'no fields'}"
            self._record(owner_id, action, details, record)
        return count

    def delete_many(self, owner_id: str, record_id: str) -> int:
        before = self._inner.find_one(owner_id, record_id)
        count = self._inner.delete_many(owner_id, record_id)
        if count and before is not None:
            self._record(owner_id, f"{self._entity}.deleted", f"Deleted {self._entity} '{_label(before)}'", before)
        return count
