"""Tests for the reorder engine and drop-position helper."""

from __future__ import annotations

import math

import pytest

from project_tracker.domain.models import Task
from project_tracker.domain.patch import ReorderItem
from project_tracker.errors import NotFoundError, ReorderError, ValidationError
from project_tracker.services.reorder import ReorderEngine, midpoint_position
from project_tracker.storage.memory_repos import MemoryOwnedRepository

from conftest import ALICE, BOB


class TestMidpointPosition:
    @pytest.mark.parametrize(
        "before,after,expected",
        [
            (None, None, 0),
            (None, 3, 2),
            (4, None, 5),
            (1, 3, 2),
            (1, 2, 1.5),
            (0.5, 0.75, 0.625),
            (2, 2, None),
            (3, 1, None),
        ],
    )
    def test_positions(self, before, after, expected):
        assert midpoint_position(before, after) == expected


class TestReorderEngine:
    def test_two_item_batch_updates_both(self, services, make_task):
        a = make_task("A")
        b = make_task("B")
        result = services.reorder.reorder(ALICE, [
            ReorderItem(id=a.id, kanban_position=1, status="in_progress"),
            {"id": b.id, "kanbanPosition": 0, "status": "in_progress"},
        ])
        assert [(t.id, t.kanban_position, t.status) for t in result] == [
            (a.id, 1, "in_progress"),
            (b.id, 0, "in_progress"),
        ]
        assert services.tasks.get_task(ALICE, a.id).kanban_position == 1
        assert services.tasks.get_task(ALICE, b.id).status == "in_progress"

    def test_positions_are_stored_verbatim(self, services, make_task):
        task = make_task()
        services.reorder.reorder(ALICE, [{"id": task.id, "kanban_position": 1.125, "status": "todo"}])
        assert services.tasks.get_task(ALICE, task.id).kanban_position == 1.125

    def test_empty_batch(self, services):
        with pytest.raises(ValidationError):
            services.reorder.reorder(ALICE, [])

    @pytest.mark.parametrize(
        "item",
        [
            {"id": "", "kanbanPosition": 0, "status": "todo"},
            {"id": "t", "kanbanPosition": "1", "status": "todo"},
            {"id": "t", "kanbanPosition": True, "status": "todo"},
            {"id": "t", "kanbanPosition": math.inf, "status": "todo"},
            {"id": "t", "kanbanPosition": 0, "status": "archived"},
            "not-an-object",
        ],
    )
    def test_invalid_items_name_the_index(self, services, item):
        with pytest.raises(ValidationError) as excinfo:
            services.reorder.reorder(ALICE, [item])
        assert "updates[0]" in excinfo.value.message

    def test_duplicate_ids_rejected(self, services, make_task):
        task = make_task()
        with pytest.raises(ValidationError):
            services.reorder.reorder(ALICE, [
                {"id": task.id, "kanbanPosition": 0, "status": "todo"},
                {"id": task.id, "kanbanPosition": 1, "status": "todo"},
            ])

    def test_unowned_id_fails_batch_without_writes(self, services, make_task):
        mine = make_task("Mine")
        theirs = make_task("Theirs")
        with pytest.raises(NotFoundError) as excinfo:
            services.reorder.reorder(BOB, [{"id": theirs.id, "kanbanPosition": 9, "status": "done"}])
        assert excinfo.value.detail == {"ids": [theirs.id]}

        with pytest.raises(NotFoundError):
            services.reorder.reorder(ALICE, [
                {"id": mine.id, "kanbanPosition": 9, "status": "done"},
                {"id": "task-missing", "kanbanPosition": 3, "status": "done"},
            ])
        assert services.tasks.get_task(ALICE, mine.id).kanban_position == mine.kanban_position
        assert services.tasks.get_task(ALICE, mine.id).status == "todo"


class _FailingOnSecondWrite(MemoryOwnedRepository):
    def __init__(self) -> None:
        super().__init__(Task)
        self.writes = 0

    def update_many(self, owner_id, record_id, fields, *, expected_revision=None):
        self.writes += 1
        if self.writes == 2:
            raise OSError("disk full")
        return super().update_many(owner_id, record_id, fields, expected_revision=expected_revision)


def test_partial_failure_reports_applied_and_failed_ids():
    repo = _FailingOnSecondWrite()
    ids = [repo.create(ALICE, {"title": f"T{i}"}).id for i in range(3)]
    engine = ReorderEngine(repo)

    with pytest.raises(ReorderError) as excinfo:
        engine.reorder(ALICE, [{"id": i, "kanbanPosition": n, "status": "done"} for n, i in enumerate(ids)])

    detail = excinfo.value.detail
    assert detail["applied"] == [ids[0]]
    assert detail["failed"] == ids[1]
    assert detail["skipped"] == [ids[2]]
    assert excinfo.value.status_code == 500
    assert repo.find_one(ALICE, ids[0]).status == "done"
    assert repo.find_one(ALICE, ids[2]).status == "todo"
