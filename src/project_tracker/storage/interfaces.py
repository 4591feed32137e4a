from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Generic, Mapping, Optional, TypeVar

from ..domain.models import ActivityLog, User

R = TypeVar("R")


class OwnedRepository(ABC, Generic[R]):
    """Persistence keyed by owning user.

    Every operation takes the owner identity as its first argument. Records
    owned by anyone else are invisible: they are never returned, updated or
    deleted, and an update/delete against them reports a count of 0.
    """

    @abstractmethod
    def find(self, owner_id: str, filter: Optional[Mapping[str, Any]] = None) -> list[R]:
        raise NotImplementedError

    @abstractmethod
    def find_one(self, owner_id: str, record_id: str) -> Optional[R]:
        raise NotImplementedError

    @abstractmethod
    def create(self, owner_id: str, fields: Mapping[str, Any]) -> R:
        raise NotImplementedError

    @abstractmethod
    def update_many(
        self,
        owner_id: str,
        record_id: str,
        fields: Mapping[str, Any],
        *,
        expected_revision: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    def delete_many(self, owner_id: str, record_id: str) -> int:
        raise NotImplementedError


class ActivityRepository(ABC):
    @abstractmethod
    def append(self, entry: ActivityLog) -> ActivityLog:
        raise NotImplementedError

    @abstractmethod
    def list_recent(self, owner_id: str, limit: int = 100) -> list[ActivityLog]:
        raise NotImplementedError


class UserRepository(ABC):
    @abstractmethod
    def list(self) -> list[User]:
        raise NotImplementedError

    @abstractmethod
    def get(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, user: User) -> User:
        raise NotImplementedError
