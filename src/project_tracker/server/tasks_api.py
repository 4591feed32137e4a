"""Task endpoints, mounted under ``/api/tasks``."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from ..services.registry import TrackerServices
from .auth import get_owner_id
from .deps import expected_revision, get_services
from .schemas import CreateTaskRequest, ReorderRequest, UpdateTaskRequest


def create_tasks_router() -> APIRouter:
    router = APIRouter(prefix="/api/tasks", tags=["tasks"])

    @router.get("")
    async def list_tasks(
        status: Optional[str] = Query(None),
        priority: Optional[str] = Query(None),
        project_id: Optional[str] = Query(None, alias="projectId"),
        search: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> list[dict[str, Any]]:
        tasks = services.tasks.list_tasks(
            owner_id,
            status=status,
            priority=priority,
            project_id=project_id,
            search=search,
            sort=sort,
        )
        return [t.to_api() for t in tasks]

    @router.post("", status_code=201)
    async def create_task(
        body: CreateTaskRequest,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.tasks.create_task(owner_id, body.to_create()).to_api()

    @router.patch("/reorder")
    async def reorder_tasks(
        body: ReorderRequest,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        updated = services.reorder.reorder(owner_id, [item.to_item() for item in body.updates])
        return {"message": "Tasks reordered successfully", "data": [t.to_api() for t in updated]}

    @router.get("/{task_id}")
    async def get_task(
        task_id: str,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.tasks.get_task(owner_id, task_id).to_api()

    @router.put("/{task_id}")
    async def update_task(
        task_id: str,
        body: UpdateTaskRequest,
        owner_id: str = Depends(get_owner_id),
        revision: Optional[int] = Depends(expected_revision),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        task = services.tasks.update_task(owner_id, task_id, body.to_patch(), expected_revision=revision)
        return task.to_api()

    @router.delete("/{task_id}")
    async def delete_task(
        task_id: str,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, str]:
        services.tasks.delete_task(owner_id, task_id)
        return {"message": "Task deleted"}

    return router
