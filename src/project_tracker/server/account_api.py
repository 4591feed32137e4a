"""Profile, activity feed and dashboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from ..constants import ACTIVITY_DEFAULT_LIMIT, THEME_PREFERENCES
from ..errors import NotFoundError
from ..services.common import check_choice, require_text
from ..services.registry import TrackerServices
from .auth import get_owner_id
from .deps import get_services
from .schemas import UpdateUserRequest


def create_account_router() -> APIRouter:
    router = APIRouter(prefix="/api", tags=["account"])

    @router.get("/users/me")
    async def get_me(
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        user = services.container.users.get(owner_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.to_api()

    @router.patch("/users/me")
    async def update_me(
        body: UpdateUserRequest,
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        users = services.container.users
        user = users.get(owner_id)
        if user is None:
            raise NotFoundError("User not found")
        changes = body.supplied()
        if "name" in changes:
            user.name = require_text(changes["name"], "name")
        if "theme_preference" in changes:
            user.theme_preference = check_choice(changes["theme_preference"], THEME_PREFERENCES, "themePreference")
        return users.upsert(user).to_api()

    @router.get("/activity")
    async def list_activity(
        limit: int = Query(ACTIVITY_DEFAULT_LIMIT),
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> list[dict[str, Any]]:
        return [entry.to_api() for entry in services.activity.recent(owner_id, limit)]

    @router.get("/dashboard")
    async def dashboard(
        owner_id: str = Depends(get_owner_id),
        services: TrackerServices = Depends(get_services),
    ) -> dict[str, Any]:
        return services.dashboard.summary(owner_id).to_api()

    return router
