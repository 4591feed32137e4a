from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar

from filelock import FileLock
from loguru import logger

from ..constants import SCHEMA_VERSION
from ..domain.models import ActivityLog, User
from ..errors import InternalError
from ..io_utils import _append_jsonl, _atomic_write_yaml, _load_data_with_error, _read_jsonl
from .base import OwnedCollection, _require_owner
from .interfaces import ActivityRepository, UserRepository

R = TypeVar("R")

LOCK_TIMEOUT = 30  # seconds


class _YamlFile:
    """One YAML document holding a single list under ``key``."""

    def __init__(self, path: Path, lock_path: Path, key: str) -> None:
        self.path = path
        self.key = key
        self.lock = FileLock(str(lock_path), timeout=LOCK_TIMEOUT)
        self.thread_lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self.thread_lock:
            with self.lock:
                yield

    def load(self) -> list[dict[str, Any]]:
        data, err = _load_data_with_error(self.path, {})
        if err:
            # Refuse to continue rather than overwrite a corrupted file on the next save.
            raise InternalError(f"Cannot read {self.path}: {err}")
        items = data.get(self.key, [])
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def save(self, items: list[dict[str, Any]]) -> None:
        try:
            _atomic_write_yaml(self.path, {"version": SCHEMA_VERSION, self.key: items})
        except OSError as exc:
            logger.error("Failed to write {}: {}", self.path, exc)
            raise InternalError(f"Cannot write {self.path}: {exc}") from exc


class FileOwnedRepository(OwnedCollection[R]):
    def __init__(
        self,
        path: Path,
        lock_path: Path,
        key: str,
        record_cls: Callable[..., R],
    ) -> None:
        super().__init__(record_cls)
        self._file = _YamlFile(path, lock_path, key)

    def _locked(self):  # type: ignore[no-untyped-def]
        return self._file.locked()

    def _load(self) -> list[R]:
        return [self._cls.from_dict(item) for item in self._file.load()]  # type: ignore[attr-defined]

    def _save(self, records: list[R]) -> None:
        self._file.save([r.to_dict() for r in records])  # type: ignore[attr-defined]


class FileActivityRepository(ActivityRepository):
    def __init__(self, path: Path, lock_path: Path) -> None:
        self._path = path
        self._lock = FileLock(str(lock_path), timeout=LOCK_TIMEOUT)
        self._thread_lock = threading.RLock()

    def append(self, entry: ActivityLog) -> ActivityLog:
        with self._thread_lock:
            with self._lock:
                _append_jsonl(self._path, entry.to_dict())
        return entry

    def list_recent(self, owner_id: str, limit: int = 100) -> list[ActivityLog]:
        _require_owner(owner_id)
        if limit < 1:
            return []
        with self._thread_lock:
            with self._lock:
                raw = _read_jsonl(self._path)
        entries = [ActivityLog.from_dict(item) for item in reversed(raw) if item.get("owner_id") == owner_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]


class FileUserRepository(UserRepository):
    def __init__(self, path: Path, lock_path: Path) -> None:
        self._file = _YamlFile(path, lock_path, "users")

    def list(self) -> list[User]:
        with self._file.locked():
            return [User.from_dict(item) for item in self._file.load()]

    def get(self, user_id: str) -> Optional[User]:
        for user in self.list():
            if user.id == user_id:
                return user
        return None

    def get_by_email(self, email: str) -> Optional[User]:
        needle = email.strip().lower()
        for user in self.list():
            if user.email.lower() == needle:
                return user
        return None

    def upsert(self, user: User) -> User:
        with self._file.locked():
            users = [User.from_dict(item) for item in self._file.load()]
            for idx, existing in enumerate(users):
                if existing.id == user.id:
                    users[idx] = user
                    break
            else:
                users.append(user)
            self._file.save([u.to_dict() for u in users])
        return user
