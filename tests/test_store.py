"""Tests for the owner-scoped repositories and the activity decorator."""

from __future__ import annotations

from pathlib import Path

import pytest

from project_tracker.domain.models import ActivityLog, Task, User
from project_tracker.errors import ConflictError, InternalError
from project_tracker.storage.audited import AuditedRepository
from project_tracker.storage.container import Container
from project_tracker.storage.file_repos import FileActivityRepository, FileOwnedRepository, FileUserRepository
from project_tracker.storage.interfaces import ActivityRepository
from project_tracker.storage.memory_repos import MemoryActivityRepository, MemoryOwnedRepository


@pytest.fixture(params=["memory", "file"])
def repo(request, tmp_path: Path):
    if request.param == "memory":
        return MemoryOwnedRepository(Task)
    return FileOwnedRepository(tmp_path / "tasks.yaml", tmp_path / "tasks.lock", "tasks", Task)


class TestOwnedRepository:
    def test_create_assigns_identity_and_timestamps(self, repo):
        task = repo.create("alice", {"title": "Draft", "project_id": "proj-1"})
        assert task.id.startswith("task-")
        assert task.owner_id == "alice"
        assert task.revision == 1
        assert task.created_at == task.updated_at

    def test_other_owner_cannot_see_or_touch_record(self, repo):
        task = repo.create("alice", {"title": "Draft"})
        assert repo.find_one("bob", task.id) is None
        assert repo.find("bob") == []
        assert repo.update_many("bob", task.id, {"title": "Hijacked"}) == 0
        assert repo.delete_many("bob", task.id) == 0
        assert repo.find_one("alice", task.id).title == "Draft"

    def test_empty_owner_is_rejected(self, repo):
        with pytest.raises(ValueError):
            repo.find("")
        with pytest.raises(ValueError):
            repo.create("", {"title": "Draft"})

    def test_protected_fields_cannot_be_updated(self, repo):
        task = repo.create("alice", {"title": "Draft"})
        for field in ("owner_id", "id", "created_at", "revision"):
            with pytest.raises(ValueError):
                repo.update_many("alice", task.id, {field: "x"})

    def test_unknown_fields_are_rejected(self, repo):
        with pytest.raises(ValueError):
            repo.create("alice", {"title": "Draft", "colour": "red"})

    def test_update_bumps_revision_and_updated_at(self, repo):
        task = repo.create("alice", {"title": "Draft"})
        assert repo.update_many("alice", task.id, {"title": "Final"}) == 1
        updated = repo.find_one("alice", task.id)
        assert updated.title == "Final"
        assert updated.revision == 2
        assert updated.updated_at >= task.updated_at

    def test_expected_revision_mismatch_raises_conflict(self, repo):
        task = repo.create("alice", {"title": "Draft"})
        repo.update_many("alice", task.id, {"title": "v2"}, expected_revision=1)
        with pytest.raises(ConflictError):
            repo.update_many("alice", task.id, {"title": "v3"}, expected_revision=1)
        assert repo.find_one("alice", task.id).title == "v2"

    def test_find_filters_by_field(self, repo):
        repo.create("alice", {"title": "A", "status": "todo"})
        repo.create("alice", {"title": "B", "status": "done"})
        done = repo.find("alice", {"status": "done"})
        assert [t.title for t in done] == ["B"]

    def test_returned_records_are_copies(self, repo):
        task = repo.create("alice", {"title": "Draft"})
        task.title = "Mutated locally"
        assert repo.find_one("alice", task.id).title == "Draft"


class TestFileStore:
    def test_records_survive_a_new_repository_instance(self, tmp_path: Path):
        path, lock = tmp_path / "tasks.yaml", tmp_path / "tasks.lock"
        first = FileOwnedRepository(path, lock, "tasks", Task)
        created = first.create("alice", {"title": "Persist me", "due_date": None, "kanban_position": 2.5})

        second = FileOwnedRepository(path, lock, "tasks", Task)
        loaded = second.find_one("alice", created.id)
        assert loaded == created

    def test_corrupt_file_raises_internal_error(self, tmp_path: Path):
        path = tmp_path / "tasks.yaml"
        path.write_text("tasks: [unclosed\n", encoding="utf-8")
        repo = FileOwnedRepository(path, tmp_path / "tasks.lock", "tasks", Task)
        with pytest.raises(InternalError):
            repo.find("alice")
        assert path.read_text(encoding="utf-8") == "tasks: [unclosed\n"

    def test_activity_jsonl_is_append_only_and_scoped(self, tmp_path: Path):
        repo = FileActivityRepository(tmp_path / "activity.jsonl", tmp_path / "activity.lock")
        repo.append(ActivityLog(action="task.created", details="a", owner_id="alice"))
        repo.append(ActivityLog(action="task.created", details="b", owner_id="bob"))
        repo.append(ActivityLog(action="task.deleted", details="c", owner_id="alice"))

        lines = (tmp_path / "activity.jsonl").read_text(encoding="utf-8").splitlines()
        assert len(lines) == 3
        recent = repo.list_recent("alice", 10)
        assert [e.details for e in recent] == ["c", "a"]
        assert len(repo.list_recent("alice", 1)) == 1

    def test_user_upsert_and_lookup(self, tmp_path: Path):
        users = FileUserRepository(tmp_path / "users.yaml", tmp_path / "users.lock")
        users.upsert(User(id="u1", name="Ada", email="Ada@Example.com"))
        users.upsert(User(id="u1", name="Ada L.", email="Ada@Example.com"))
        assert [u.name for u in users.list()] == ["Ada L."]
        assert users.get_by_email("ada@example.com").id == "u1"
        assert users.get("missing") is None

    def test_container_bootstraps_data_dir(self, tmp_path: Path):
        root = tmp_path / ".project_tracker"
        container = Container.from_data_dir(root)
        for name in ("projects.yaml", "tasks.yaml", "users.yaml", "activity.jsonl", "config.yaml"):
            assert (root / name).exists()
        project = container.projects.create("alice", {"name": "Site"})
        assert container.activity.list_recent("alice", 5)[0].project_id == project.id


class _BrokenActivity(ActivityRepository):
    def append(self, entry: ActivityLog) -> ActivityLog:
        raise OSError("disk full")

    def list_recent(self, owner_id: str, limit: int = 100) -> list[ActivityLog]:
        return []


class TestAuditedRepository:
    def _repo(self):
        activity = MemoryActivityRepository()
        return AuditedRepository(MemoryOwnedRepository(Task), activity, "task"), activity

    def test_one_entry_per_successful_mutation(self):
        repo, activity = self._repo()
        task = repo.create("alice", {"title": "Draft", "project_id": "proj-1"})
        repo.update_many("alice", task.id, {"title": "Final"})
        repo.update_many("alice", task.id, {"status": "done"})
        repo.update_many("alice", task.id, {"kanban_position": 4, "status": "done"})
        repo.update_many("alice", task.id, {"kanban_position": 0, "status": "todo"})
        repo.delete_many("alice", task.id)

        actions = [e.action for e in reversed(activity.list_recent("alice", 10))]
        assert actions == [
            "task.created",
            "task.updated",
            "task.status_changed",
            "task.moved",
            "task.status_changed",
            "task.deleted",
        ]
        assert all(e.task_id == task.id and e.project_id == "proj-1" for e in activity.list_recent("alice", 10))

    def test_no_entry_when_nothing_matched(self):
        repo, activity = self._repo()
        task = repo.create("alice", {"title": "Draft"})
        assert repo.update_many("bob", task.id, {"title": "x"}) == 0
        assert repo.delete_many("bob", task.id) == 0
        assert activity.list_recent("bob", 10) == []
        assert len(activity.list_recent("alice", 10)) == 1

    def test_activity_failure_does_not_fail_mutation(self):
        repo = AuditedRepository(MemoryOwnedRepository(Task), _BrokenActivity(), "task")
        task = repo.create("alice", {"title": "Still saved"})
        assert repo.update_many("alice", task.id, {"title": "Still updated"}) == 1
        assert repo.find_one("alice", task.id).title == "Still updated"
        assert repo.delete_many("alice", task.id) == 1

    def test_rejects_unknown_entity(self):
        with pytest.raises(ValueError):
            AuditedRepository(MemoryOwnedRepository(Task), MemoryActivityRepository(), "comment")
