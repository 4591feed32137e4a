"""Project endpoints, mounted under ``/api/projects``."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from ..services.registry import TrackerServices
from .auth import get_owner_id
from .deps import expected_revision, get_services
from .schemas import CreateProjectRequest, UpdateProjectRequest


def create_projects_router() -> APIRouter:
    router = APIRouter(prefix="/api/projects", tags=["projects"])

    @router.get("")
    async def list_projects(
        status: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> list[dict[str, Any]]:
        projects = services.projects.list_projects(owner_id, status=status, search=search, sort=sort)
        return [p.to_api() for p in projects]

    @router.post("", status_code=201)
    async def create_project(
        body: CreateProjectRequest,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.projects.create_project(owner_id, body.to_create()).to_api()

    @router.get("/progress")
    async def project_progress(
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> list[dict[str, Any]]:
        return [
            {"projectId": p["project_id"], "name": p["name"], "total": p["total"], "done": p["done"], "percent": p["percent"]}
            for p in services.projects.project_progress(owner_id)
        ]

    @router.get("/{project_id}")
    async def get_project(
        project_id: str,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.projects.get_project(owner_id, project_id).to_api()

    @router.put("/{project_id}")
    async def update_project(
        project_id: str,
        body: UpdateProjectRequest,
        owner_id: str = Depends(get_owner_id),
        revision: Optional[int] = Depends(expected_revision),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        project = services.projects.update_project(owner_id, project_id, body.to_patch(), expected_revision=revision)
        return project.to_api()

    @router.delete("/{project_id}")
    async def delete_project(
        project_id: str,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, str]:
        services.projects.delete_project(owner_id, project_id)
        return {"message": "Project deleted"}

    @router.post("/{project_id}/duplicate", status_code=201)
    async def duplicate_project(
        project_id: str,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.projects.duplicate_project(owner_id, project_id).to_api()

    return router
