"""Shared fixtures: in-memory services, an authenticated API app and token helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from project_tracker.config import AuthSettings, TrackerSettings  # noqa: E402
from project_tracker.domain.models import User  # noqa: E402
from project_tracker.domain.patch import ProjectCreate, TaskCreate  # noqa: E402
from project_tracker.server.auth import create_access_token  # noqa: E402
from project_tracker.services import TrackerServices  # noqa: E402
from project_tracker.storage import Container  # noqa: E402

ALICE = "user-alice"
BOB = "user-bob"


@pytest.fixture
def container() -> Container:
    return Container.in_memory()


@pytest.fixture
def services(container: Container) -> TrackerServices:
    return TrackerServices.from_container(container)


@pytest.fixture
def alice_project(services: TrackerServices):
    return services.projects.create_project(ALICE, ProjectCreate(name="Website Redesign"))


@pytest.fixture
def make_task(services: TrackerServices, alice_project):
    """Create a task for Alice in her default project."""

    def _make(title: str = "Write copy", **kwargs):
        kwargs.setdefault("project_id", alice_project.id)
        return services.tasks.create_task(ALICE, TaskCreate(title=title, **kwargs))

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> TrackerSettings:
    return TrackerSettings(
        data_dir=tmp_path / ".project_tracker",
        storage="memory",
        auth=AuthSettings(enabled=True, secret_key="test-secret"),
    )


@pytest.fixture
def app(settings: TrackerSettings, container: Container):
    from project_tracker.server import create_app

    container.users.upsert(User(id=ALICE, name="Alice", email="alice@example.com"))
    container.users.upsert(User(id=BOB, name="Bob", email="bob@example.com"))
    return create_app(settings=settings, container=container)


@pytest.fixture
def auth_headers(settings: TrackerSettings):
    def _headers(user_id: str = ALICE) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, settings.auth)}"}

    return _headers


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    return TestClient(app)
