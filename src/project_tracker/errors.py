"""Typed errors raised by the services and mapped to HTTP status codes."""

from __future__ import annotations

from typing import Any, Optional


class TrackerError(Exception):
    """Base class for all errors the API knows how to render."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, detail: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.detail = detail

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class Unauthorized(TrackerError):
    status_code = 401
    public_message = "Unauthorized"


class ValidationError(TrackerError):
    status_code = 400
    public_message = "Invalid data"


class NotFoundError(TrackerError):
    """Record absent or owned by someone else. Callers cannot tell which."""

    status_code = 404
    public_message = "Not found"


class ConflictError(TrackerError):
    status_code = 409
    public_message = "Record was modified by another request"


class InternalError(TrackerError):
    """Persistence failure. The message sent to clients is always generic."""

    def __init__(self, message: Optional[str] = None, *, detail: Optional[dict[str, Any]] = None) -> None:
        super().__init__(self.public_message, detail=detail)
        self.internal_message = message


class ReorderError(TrackerError):
    """A reorder batch stopped part way; ``detail`` lists applied and failed ids."""

    public_message = "Failed to reorder tasks"
