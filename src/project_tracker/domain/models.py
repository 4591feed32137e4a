from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Literal, Optional, Union

from ..utils import _format_iso, _now, _parse_iso


ProjectStatus = Literal["planning", "in_progress", "completed", "archived"]
TaskStatus = Literal["todo", "in_progress", "done"]
Priority = Literal["low", "medium", "high"]
ThemePreference = Literal["light", "dark", "system"]

Position = Union[int, float]

_DATETIME_FIELDS = {"start_date", "end_date", "due_date", "created_at", "updated_at", "timestamp"}


def _id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _storage_dict(record: Any) -> dict[str, Any]:
    data = asdict(record)
    for key in _DATETIME_FIELDS & data.keys():
        data[key] = _format_iso(data[key])
    return data


def _api_dict(record: Any) -> dict[str, Any]:
    return {_camel(key): value for key, value in _storage_dict(record).items()}


def _coerce_record(cls: Any, data: dict[str, Any]) -> dict[str, Any]:
    known = cls.__dataclass_fields__
    out: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            continue
        if key in _DATETIME_FIELDS:
            value = _parse_iso(value)
        out[key] = value
    return out


@dataclass
class User:
    id: str = field(default_factory=lambda: _id("user"))
    name: str = ""
    email: str = ""
    theme_preference: ThemePreference = "system"
    created_at: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return _storage_dict(self)

    def to_api(self) -> dict[str, Any]:
        return _api_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        values = _coerce_record(cls, data)
        if values.get("created_at") is None:
            values.pop("created_at", None)
        return cls(**values)


@dataclass
class Project:
    id: str = field(default_factory=lambda: _id("proj"))
    name: str = ""
    description: Optional[str] = None
    status: ProjectStatus = "planning"
    color: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    owner_id: str = ""
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    revision: int = 1

    def to_dict(self) -> dict[str, Any]:
        return _storage_dict(self)

    def to_api(self) -> dict[str, Any]:
        return _api_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        values = _coerce_record(cls, data)
        for stamp in ("created_at", "updated_at"):
            if values.get(stamp) is None:
                values.pop(stamp, None)
        values["revision"] = int(values.get("revision") or 1)
        return cls(**values)


@dataclass
class Task:
    id: str = field(default_factory=lambda: _id("task"))
    title: str = ""
    description: Optional[str] = None
    status: TaskStatus = "todo"
    priority: Priority = "medium"
    due_date: Optional[datetime] = None
    # None when the task is unassigned; may dangle after its project is deleted.
    project_id: Optional[str] = None
    owner_id: str = ""
    kanban_position: Position = 0
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    revision: int = 1

    def to_dict(self) -> dict[str, Any]:
        return _storage_dict(self)

    def to_api(self) -> dict[str, Any]:
        return _api_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        values = _coerce_record(cls, data)
        for stamp in ("created_at", "updated_at"):
            if values.get(stamp) is None:
                values.pop(stamp, None)
        values["revision"] = int(values.get("revision") or 1)
        if values.get("kanban_position") is None:
            values["kanban_position"] = 0
        return cls(**values)


@dataclass
class ActivityLog:
    """Append-only record of a project or task mutation."""

    id: str = field(default_factory=lambda: _id("act"))
    action: str = ""
    details: str = ""
    owner_id: str = ""
    project_id: Optional[str] = None
    task_id: Optional[str] = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> dict[str, Any]:
        return _storage_dict(self)

    def to_api(self) -> dict[str, Any]:
        return _api_dict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActivityLog":
        values = _coerce_record(cls, data)
        if values.get("timestamp") is None:
            values.pop("timestamp", None)
        return cls(**values)
