from __future__ import annotations

from abc import abstractmethod
from contextlib import AbstractContextManager
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional, TypeVar

from ..constants import PROTECTED_FIELDS
from ..errors import ConflictError
from ..utils import _now
from .interfaces import OwnedRepository

R = TypeVar("R")


def _require_owner(owner_id: str) -> None:
    if not owner_id or not isinstance(owner_id, str):
        raise ValueError("owner_id is required for every store operation")


class OwnedCollection(OwnedRepository[R]):
    """Shared owner-scoping logic over a flat list of dataclass records.

    Subclasses only decide where the list lives (``_load``/``_save``) and how
    access is serialized (``_locked``).
    """

    def __init__(self, record_cls: Callable[..., R]) -> None:
        self._cls = record_cls
        self._field_names = set(getattr(record_cls, "__dataclass_fields__"))

    @abstractmethod
    def _locked(self) -> AbstractContextManager[Any]:
        raise NotImplementedError

    @abstractmethod
    def _load(self) -> list[R]:
        raise NotImplementedError

    @abstractmethod
    def _save(self, records: list[R]) -> None:
        raise NotImplementedError

    def _check_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(fields)
        unknown = values.keys() - self._field_names
        if unknown:
            raise ValueError(f"Unknown fields: {sorted(unknown)}")
        protected = values.keys() & PROTECTED_FIELDS
        if protected:
            raise ValueError(f"Fields cannot be written directly: {sorted(protected)}")
        return values

    # -- reads --------------------------------------------------------------

    def find(self, owner_id: str, filter: Optional[Mapping[str, Any]] = None) -> list[R]:
        _require_owner(owner_id)
        criteria = dict(filter or {})
        unknown = criteria.keys() - self._field_names
        if unknown:
            raise ValueError(f"Unknown filter fields: {sorted(unknown)}")
        with self._locked():
            records = self._load()
        out: list[R] = []
        for record in records:
            if getattr(record, "owner_id") != owner_id:
                continue
            if any(getattr(record, key) != value for key, value in criteria.items()):
                continue
            out.append(record)
        return out

    def find_one(self, owner_id: str, record_id: str) -> Optional[R]:
        _require_owner(owner_id)
        with self._locked():
            for record in self._load():
                if getattr(record, "id") == record_id and getattr(record, "owner_id") == owner_id:
                    return record
        return None

    # -- writes -------------------------------------------------------------

    def create(self, owner_id: str, fields: Mapping[str, Any]) -> R:
        _require_owner(owner_id)
        values = self._check_fields(fields)
        if "owner_id" in values:
            raise ValueError("owner_id is taken from the caller identity")
        now = _now()
        record = self._cls(**values, owner_id=owner_id, created_at=now, updated_at=now, revision=1)
        with self._locked():
            records = self._load()
            records.append(record)
            self._save(records)
        return replace(record)  # type: ignore[type-var]

    def update_many(
        self,
        owner_id: str,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        expected_revision: Optional[int] = None,
    ) -> int:
        _require_owner(owner_id)
        values = self._check_fields(fields)
        with self._locked():
            records = self._load()
            for record in records:
                if getattr(record, "id") != record_id or getattr(record, "owner_id") != owner_id:
                    continue
                current = getattr(record, "revision")
                if expected_revision is not None and current != expected_revision:
                    raise ConflictError(
                        f"Expected revision {expected_revision}, found {current}",
                        detail={"id": record_id, "revision": current},
                    )
                for key, value in values.items():
                    setattr(record, key, value)
                setattr(record, "updated_at", _now())
                setattr(record, "revision", current + 1)
                self._save(records)
                return 1
        return 0

    def delete_many(self, owner_id: str, record_id: str) -> int:
        _require_owner(owner_id)
        with self._locked():
            records = self._load()
            keep = [
                r for r in records
                if not (getattr(r, "id") == record_id and getattr(r, "owner_id") == owner_id)
            ]
            removed = len(records) - len(keep)
            if removed:
                self._save(keep)
        return removed
