"""In-memory repositories, used for ephemeral servers and tests."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Callable, Optional, TypeVar

from ..domain.models import ActivityLog, User
from .base import OwnedCollection, _require_owner
from .interfaces import ActivityRepository, UserRepository

R = TypeVar("R")


class MemoryOwnedRepository(OwnedCollection[R]):
    def __init__(self, record_cls: Callable[..., R]) -> None:
        super().__init__(record_cls)
        self._items: list[R] = []
        self._lock = threading.RLock()

    def _locked(self) -> threading.RLock:
        return self._lock

    def _load(self) -> list[R]:
        # Hand out copies so callers never mutate stored state in place.
        return [replace(item) for item in self._items]  # type: ignore[type-var]

    def _save(self, records: list[R]) -> None:
        self._items = [replace(item) for item in records]  # type: ignore[type-var]


class MemoryActivityRepository(ActivityRepository):
    def __init__(self) -> None:
        self._entries: list[ActivityLog] = []
        self._lock = threading.Lock()

    def append(self, entry: ActivityLog) -> ActivityLog:
        with self._lock:
            self._entries.append(replace(entry))
        return entry

    def list_recent(self, owner_id: str, limit: int = 100) -> list[ActivityLog]:
        _require_owner(owner_id)
        if limit < 1:
            return []
        with self._lock:
            owned = [replace(e) for e in reversed(self._entries) if e.owner_id == owner_id]
        # Newest first; later appends win timestamp ties.
        owned.sort(key=lambda e: e.timestamp, reverse=True)
        return owned[:limit]


class MemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = threading.Lock()

    def list(self) -> list[User]:
        with self._lock:
            return [replace(u) for u in self._users.values()]

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    def get_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        for user in self.list():
            if user.email.lower() == needle:
                return user
        return None

    def upsert(self, user: User) -> User:
        with self._lock:
            self._users[user.id] = replace(user)
        return user
