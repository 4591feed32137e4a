"""Typed HTTP client for the tracker API, built on ``httpx``."""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger


class ClientError(Exception):
    """A request failed. ``status`` is 0 when no response arrived at all."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"{status}: {message}" if status else message)
        self.status = status
        self.message = message


class TrackerClient:
    """Issue one request per call and return decoded JSON.

    Args:
        http: A configured ``httpx.Client``. Its base URL must point at the
            server root; FastAPI's ``TestClient`` works as well.
        token: Bearer token sent with every request.
    """

    def __init__(self, http: httpx.Client, token: Optional[str] = None) -> None:
        self._http = http
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("{} {} did not complete: {}", method, path, exc)
            raise ClientError(0, str(exc) or exc.__class__.__name__) from exc
        if response.status_code >= 400:
            try:
                message = str(response.json().get("error") or response.reason_phrase)
            except (ValueError, AttributeError):
                message = response.reason_phrase or f"HTTP error! status: {response.status_code}"
            raise ClientError(response.status_code, message)
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("{} {} returned a body that is not JSON", method, path)
            raise ClientError(response.status_code, "Invalid response body") from exc

    # -- projects -----------------------------------------------------------

    def list_projects(self, **params: Any) -> list[dict[str, Any]]:
        return self._request("GET", "/api/projects", params={k: v for k, v in params.items() if v is not None})

    def get_project(self, project_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/projects/{project_id}")

    def create_project(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/api/projects", json=fields)

    def update_project(self, project_id: str, fields: dict[str, Any], revision: Optional[int] = None) -> dict[str, Any]:
        headers = {"If-Match": str(revision)} if revision is not None else {}
        return self._request("PUT", f"/api/projects/{project_id}", json=fields, headers=headers)

    def delete_project(self, project_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/projects/{project_id}")

    def duplicate_project(self, project_id: str) -> dict[str, Any]:
        return self._request("POST", f"/api/projects/{project_id}/duplicate")

    # -- tasks --------------------------------------------------------------

    def list_tasks(self, **params: Any) -> list[dict[str, Any]]:
        return self._request("GET", "/api/tasks", params={k: v for k, v in params.items() if v is not None})

    def get_task(self, task_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/tasks/{task_id}")

    def create_task(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/api/tasks", json=fields)

    def update_task(self, task_id: str, fields: dict[str, Any], revision: Optional[int] = None) -> dict[str, Any]:
        headers = {"If-Match": str(revision)} if revision is not None else {}
        return self._request("PUT", f"/api/tasks/{task_id}", json=fields, headers=headers)

    def delete_task(self, task_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/api/tasks/{task_id}")

    def reorder_tasks(self, updates: list[dict[str, Any]]) -> list[dict[str, Any]]:
        payload = self._request("PATCH", "/api/tasks/reorder", json={"updates": updates})
        return list(payload.get("data") or [])

    # -- account ------------------------------------------------------------

    def dashboard(self) -> dict[str, Any]:
        return self._request("GET", "/api/dashboard")

    def activity(self, limit: int = 50) -> list[dict[str, Any]]:
        return self._request("GET", "/api/activity", params={"limit": limit})
