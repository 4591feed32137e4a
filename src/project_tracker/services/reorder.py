"""Batch position/status updates for drag-and-drop task lanes."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from loguru import logger

from ..constants import TASK_STATUSES
from ..domain.models import Task
from ..domain.patch import ReorderItem
from ..errors import InternalError, NotFoundError, ReorderError, TrackerError, ValidationError
from ..storage.interfaces import OwnedRepository
from .common import check_position


def midpoint_position(before: Optional[Any], after: Optional[Any]) -> Optional[Any]:
    """Position for a card dropped between *before* and *after* (either may be missing).

    Returns None when the neighbours leave no gap, so the lane must be renumbered.
    """
    if before is None and after is None:
        return 0
    if before is None:
        return after - 1
    if after is None:
        return before + 1
    if before >= after:
        return None
    mid = (before + after) / 2
    return int(mid) if float(mid).is_integer() else mid


def _coerce_item(index: int, raw: Union[ReorderItem, Mapping[str, Any]]) -> ReorderItem:
    if isinstance(raw, ReorderItem):
        item = raw
    elif isinstance(raw, Mapping):
        position = raw.get("kanban_position", raw.get("kanbanPosition"))
        item = ReorderItem(id=raw.get("id"), kanban_position=position, status=raw.get("status"))
    else:
        raise ValidationError(f"updates[{index}] must be an object")
    if not isinstance(item.id, str) or not item.id:
        raise ValidationError(f"updates[{index}].id is required")
    if item.status not in TASK_STATUSES:
        raise ValidationError(f"updates[{index}].status must be one of {', '.join(TASK_STATUSES)}")
    check_position(item.kanban_position, f"updates[{index}].kanbanPosition")
    return item


class ReorderEngine:
    """Persist a drag-and-drop batch exactly as given, scoped to one owner.

    Positions are stored verbatim; the engine does not renumber lanes.
    """

    def __init__(self, tasks: OwnedRepository[Task]) -> None:
        self._tasks = tasks

    def reorder(self, owner_id: str, updates: Sequence[Union[ReorderItem, Mapping[str, Any]]]) -> list[Task]:
        if not updates:
            raise ValidationError("updates must be a non-empty list")
        items = [_coerce_item(i, raw) for i, raw in enumerate(updates)]

        seen: set[str] = set()
        for item in items:
            if item.id in seen:
                raise ValidationError(f"Task {item.id} appears more than once in the batch")
            seen.add(item.id)

        # Check every id before writing anything so an unowned id leaves the lanes untouched.
        missing = [item.id for item in items if self._tasks.find_one(owner_id, item.id) is None]
        if missing:
            raise NotFoundError("Task not found", detail={"ids": missing})

        applied: list[str] = []
        results: list[Task] = []
        for item in items:
            try:
                count = self._tasks.update_many(
                    owner_id,
                    item.id,
                    {"kanban_position": item.kanban_position, "status": item.status},
                )
                task = self._tasks.find_one(owner_id, item.id) if count else None
                if task is None:
                    raise NotFoundError("Task not found")
            except Exception as exc:
                reason = exc.message if isinstance(exc, TrackerError) and not isinstance(exc, InternalError) else "internal error"
                logger.error("Reorder stopped at {} after {} updates: {}", item.id, len(applied), exc)
                raise ReorderError(detail={
                    "applied": applied,
                    "failed": item.id,
                    "skipped": [i.id for i in items[len(applied) + 1:]],
                    "reason": reason,
                }) from exc
            applied.append(item.id)
            results.append(task)

        logger.info("Reordered {} tasks for {}", len(results), owner_id)
        return results
