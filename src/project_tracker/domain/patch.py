"""Typed create/patch inputs for the entity services.

A patch field left at :data:`UNSET` means "leave unchanged"; a field set to
``None`` means "clear the value". The two are never conflated.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Union


class _Unset:
    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Unset":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Unset":
        return self


UNSET: Any = _Unset()


def is_set(value: Any) -> bool:
    return value is not UNSET


class _PatchMixin:
    def changes(self) -> dict[str, Any]:
        """Return only the fields that were explicitly supplied."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if is_set(getattr(self, f.name))
        }

    def is_empty(self) -> bool:
        return not self.changes()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]):  # type: ignore[no-untyped-def]
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        unknown = set(data) - names
        if unknown:
            raise ValueError(f"Unknown patch fields: {sorted(unknown)}")
        return cls(**dict(data))


@dataclass
class TaskCreate:
    title: str = ""
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Any = None
    project_id: Optional[str] = None


@dataclass
class TaskPatch(_PatchMixin):
    title: Union[str, None, _Unset] = UNSET
    description: Union[str, None, _Unset] = UNSET
    status: Union[str, None, _Unset] = UNSET
    priority: Union[str, None, _Unset] = UNSET
    due_date: Any = UNSET
    project_id: Union[str, None, _Unset] = UNSET
    kanban_position: Any = UNSET


@dataclass
class ProjectCreate:
    name: str = ""
    description: Optional[str] = None
    status: Optional[str] = None
    color: Optional[str] = None
    start_date: Any = None
    end_date: Any = None


@dataclass
class ProjectPatch(_PatchMixin):
    name: Union[str, None, _Unset] = UNSET
    description: Union[str, None, _Unset] = UNSET
    status: Union[str, None, _Unset] = UNSET
    color: Union[str, None, _Unset] = UNSET
    start_date: Any = UNSET
    end_date: Any = UNSET


@dataclass
class ReorderItem:
    id: str
    kanban_position: Any
    status: str
