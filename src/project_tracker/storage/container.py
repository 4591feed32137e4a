from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..domain.models import Project, Task
from .audited import AuditedRepository
from .bootstrap import DATA_FILES, ensure_data_dir
from .file_repos import FileActivityRepository, FileOwnedRepository, FileUserRepository
from .interfaces import ActivityRepository, OwnedRepository, UserRepository
from .memory_repos import MemoryActivityRepository, MemoryOwnedRepository, MemoryUserRepository


class Container:
    """All repositories for one tracker instance.

    ``projects`` and ``tasks`` are wrapped so that every mutation also lands
    in ``activity``.
    """

    def __init__(
        self,
        projects: OwnedRepository[Project],
        tasks: OwnedRepository[Task],
        activity: ActivityRepository,
        users: UserRepository,
        data_dir: Optional[Path] = None,
    ) -> None:
        self.activity = activity
        self.users = users
        self.projects: OwnedRepository[Project] = AuditedRepository(projects, activity, "project")
        self.tasks: OwnedRepository[Task] = AuditedRepository(tasks, activity, "task")
        self.data_dir = data_dir

    @classmethod
    def in_memory(cls) -> "Container":
        return cls(
            projects=MemoryOwnedRepository(Project),
            tasks=MemoryOwnedRepository(Task),
            activity=MemoryActivityRepository(),
            users=MemoryUserRepository(),
        )

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "Container":
        root = ensure_data_dir(data_dir.resolve())

        def _paths(key: str) -> tuple[Path, Path]:
            target = root / DATA_FILES[key]
            return target, target.with_suffix(".lock")

        return cls(
            projects=FileOwnedRepository(*_paths("projects"), "projects", Project),
            tasks=FileOwnedRepository(*_paths("tasks"), "tasks", Task),
            activity=FileActivityRepository(*_paths("activity")),
            users=FileUserRepository(*_paths("users")),
            data_dir=root,
        )
