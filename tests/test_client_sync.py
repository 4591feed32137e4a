"""Tests for the optimistic client layer against a live in-process API."""

from __future__ import annotations

import httpx
import pytest

from project_tracker.client import ClientError, OptimisticCommand, ProjectBoard, SyncedList, TaskBoard, TrackerClient
from project_tracker.client.sync import replace_record

from conftest import ALICE, BOB


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str, str]] = []

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.messages.append((title, description, variant))

    @property
    def errors(self) -> list[str]:
        return [description for _, description, variant in self.messages if variant == "destructive"]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def api(client, auth_headers) -> TrackerClient:
    token = auth_headers(ALICE)["Authorization"].split(" ", 1)[1]
    return TrackerClient(client, token=token)


@pytest.fixture
def project_id(api: TrackerClient) -> str:
    return api.create_project({"name": "Website Redesign"})["id"]


@pytest.fixture
def board(api: TrackerClient, notifier: RecordingNotifier, project_id: str) -> TaskBoard:
    board = TaskBoard(api, notifier)
    board.load()
    return board


class TestTrackerClient:
    def test_error_status_and_message(self, api):
        with pytest.raises(ClientError) as excinfo:
            api.get_task("task-missing")
        assert excinfo.value.status == 404
        assert excinfo.value.message == "Task not found"

    def test_transport_failure_is_status_zero(self):
        def _refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        api = TrackerClient(httpx.Client(transport=httpx.MockTransport(_refuse), base_url="http://tracker.test"))
        with pytest.raises(ClientError) as excinfo:
            api.list_tasks()
        assert excinfo.value.status == 0

    def test_non_json_success_body_is_client_error(self):
        def _html(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>", headers={"Content-Type": "text/html"})

        api = TrackerClient(httpx.Client(transport=httpx.MockTransport(_html), base_url="http://tracker.test"))
        with pytest.raises(ClientError) as excinfo:
            api.list_tasks()
        assert excinfo.value.status == 200
        assert excinfo.value.message == "Invalid response body"

    def test_missing_token_is_401(self, client):
        with pytest.raises(ClientError) as excinfo:
            TrackerClient(client).list_projects()
        assert excinfo.value.status == 401


class TestSyncedList:
    def test_failure_applies_inverse_and_notifies(self, notifier):
        synced = SyncedList(notifier)
        synced.items = [{"id": "a"}]

        def _fail():
            raise ClientError(500, "Internal server error")

        result = synced.execute(OptimisticCommand(
            description="add b",
            forward=lambda items: items + [{"id": "b"}],
            inverse=lambda items: [i for i in items if i["id"] != "b"],
            request=_fail,
        ))
        assert result is None
        assert synced.items == [{"id": "a"}]
        assert notifier.errors == ["Failed to add b"]

    def test_unexpected_exception_rolls_back_then_propagates(self, notifier):
        synced = SyncedList(notifier)
        synced.items = [{"id": "a"}]

        def _bad_reconcile(items, response):
            raise KeyError("id")

        with pytest.raises(KeyError):
            synced.execute(OptimisticCommand(
                description="add b",
                forward=lambda items: items + [{"id": "b"}],
                inverse=lambda items: [i for i in items if i["id"] != "b"],
                request=lambda: {"ok": True},
                reconcile=_bad_reconcile,
            ))
        assert synced.items == [{"id": "a"}]
        assert notifier.errors == ["Failed to add b"]

    def test_stale_reply_does_not_overwrite_newer_record(self):
        items = [{"id": "t1", "title": "newest", "revision": 5}]
        assert replace_record(items, {"id": "t1", "title": "old", "revision": 4}) == items
        newer = {"id": "t1", "title": "server", "revision": 6}
        assert replace_record(items, newer) == [newer]

    def test_reply_for_removed_record_is_dropped(self):
        assert replace_record([], {"id": "t1", "revision": 2}) == []


class TestTaskBoard:
    def test_create_replaces_placeholder_with_server_record(self, board, notifier, project_id):
        created = board.create({"title": "Write copy", "projectId": project_id})
        assert created is not None
        assert board.items == [created]
        assert not created["id"].startswith("temp-")
        assert created["revision"] == 1
        assert ("Success", "Task created successfully", "default") in notifier.messages

    def test_create_failure_rolls_back(self, board, notifier, project_id):
        assert board.create({"title": "  ", "projectId": project_id}) is None
        assert board.items == []
        assert notifier.errors == ["Failed to create task"]

    def test_update_reconciles_server_fields(self, board, project_id):
        task = board.create({"title": "Draft", "projectId": project_id})
        updated = board.update(task["id"], {"title": "Final"})
        assert updated["revision"] == 2
        assert board.find(task["id"]) == updated

    def test_toggle_with_stale_revision_rolls_back(self, board, api, notifier, project_id):
        task = board.create({"title": "Draft", "projectId": project_id})
        api.update_task(task["id"], {"priority": "high"})

        assert board.toggle_status(task["id"], True) is None
        assert board.find(task["id"])["status"] == "todo"
        assert notifier.errors == ["Failed to update task"]

        board.load()
        done = board.toggle_status(task["id"], True)
        assert done["status"] == "done"
        assert done["priority"] == "high"

    def test_delete_failure_restores_position(self, board, api, notifier, project_id):
        first = board.create({"title": "First", "projectId": project_id})
        second = board.create({"title": "Second", "projectId": project_id})
        before = list(board.items)
        api.delete_task(first["id"])

        assert board.delete(first["id"]) is False
        assert board.items == before
        assert board.delete(second["id"]) is True
        assert [t["id"] for t in board.items] == [first["id"]]

    def test_move_within_and_across_lanes(self, board, api, project_id):
        a = board.create({"title": "A", "projectId": project_id})
        b = board.create({"title": "B", "projectId": project_id})
        c = board.create({"title": "C", "projectId": project_id})
        assert [t["title"] for t in board.lane("todo")] == ["A", "B", "C"]

        moved = board.move(c["id"], "todo", 0)
        assert moved["kanbanPosition"] == -1
        assert [t["title"] for t in board.lane("todo")] == ["C", "A", "B"]

        board.move(b["id"], "in_progress", 0)
        assert [t["title"] for t in board.lane("in_progress")] == ["B"]
        assert api.get_task(b["id"])["status"] == "in_progress"

        moved = board.move(a["id"], "in_progress", 1)
        assert moved["kanbanPosition"] == 1
        assert [t["title"] for t in board.lane("in_progress")] == ["B", "A"]

    def test_move_failure_rolls_back(self, board, api, notifier, project_id):
        task = board.create({"title": "A", "projectId": project_id})
        api.delete_task(task["id"])
        snapshot = dict(board.find(task["id"]))

        assert board.move(task["id"], "done", 0) is None
        assert board.find(task["id"]) == snapshot
        assert notifier.errors == ["Failed to update task position"]

    def test_toggle_rolls_back_when_reply_is_not_json(self, notifier):
        def _handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=[{"id": "t1", "title": "A", "status": "todo", "revision": 1}])
            return httpx.Response(200, text="<html>proxy error</html>", headers={"Content-Type": "text/html"})

        http = httpx.Client(transport=httpx.MockTransport(_handler), base_url="http://tracker.test")
        board = TaskBoard(TrackerClient(http), notifier)
        board.load()

        assert board.toggle_status("t1", True) is None
        assert board.find("t1")["status"] == "todo"
        assert notifier.errors == ["Failed to update task"]

    def test_move_between_equal_positions_renumbers_lane(self, board, api, project_id):
        a = board.create({"title": "A", "projectId": project_id})
        b = board.create({"title": "B", "projectId": project_id})
        c = board.create({"title": "C", "projectId": project_id})
        api.reorder_tasks([
            {"id": a["id"], "kanbanPosition": 5, "status": "todo"},
            {"id": b["id"], "kanbanPosition": 5, "status": "todo"},
            {"id": c["id"], "kanbanPosition": 9, "status": "todo"},
        ])
        board.load()
        first, second = [t["id"] for t in board.lane("todo")][:2]

        board.move(c["id"], "todo", 1)
        lane = board.lane("todo")
        assert [t["id"] for t in lane] == [first, c["id"], second]
        positions = [t["kanbanPosition"] for t in lane]
        assert positions == sorted(set(positions))
        stored = {t["id"]: t["kanbanPosition"] for t in api.list_tasks()}
        assert stored == {t["id"]: t["kanbanPosition"] for t in lane}

    def test_load_failure_notifies(self, client, notifier):
        board = TaskBoard(TrackerClient(client), notifier)
        assert board.load() == []
        assert notifier.errors == ["Failed to fetch tasks"]

    def test_unknown_task_raises(self, board):
        with pytest.raises(KeyError):
            board.update("task-missing", {"title": "x"})


class TestProjectBoard:
    def test_lifecycle(self, api, notifier):
        board = ProjectBoard(api, notifier)
        assert board.load() == []

        project = board.create({"name": "Website Redesign", "color": "#123456"})
        assert project["status"] == "planning"

        copy = board.duplicate(project["id"])
        assert copy["name"] == "Website Redesign (1)"
        assert [p["id"] for p in board.items] == [copy["id"], project["id"]]

        renamed = board.update(project["id"], {"name": "Relaunch"})
        assert renamed["name"] == "Relaunch"

        assert board.delete(copy["id"]) is True
        assert [p["id"] for p in board.items] == [project["id"]]
        assert [p["id"] for p in api.list_projects()] == [project["id"]]

    def test_update_of_foreign_project_rolls_back(self, client, auth_headers, notifier):
        bob = TrackerClient(client, token=auth_headers(BOB)["Authorization"].split(" ", 1)[1])
        foreign = bob.create_project({"name": "Bob's"})

        board = ProjectBoard(TrackerClient(client, token=auth_headers(ALICE)["Authorization"].split(" ", 1)[1]), notifier)
        board.items = [foreign]
        assert board.update(foreign["id"], {"name": "Stolen"}) is None
        assert board.items == [foreign]
        assert bob.get_project(foreign["id"])["name"] == "Bob's"
