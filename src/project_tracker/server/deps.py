from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from ..errors import ValidationError
from ..services.registry import TrackerServices


def get_services(request: Request) -> TrackerServices:
    return request.app.state.services


def expected_revision(if_match: Optional[str] = Header(None)) -> Optional[int]:
    """Read a revision number from ``If-Match`` (``3``, ``"3"`` or ``W/"3"``)."""
    if if_match is None or not if_match.strip():
        return None
    raw = if_match.strip()
    if raw.startswith("W/"):
        raw = raw[2:]
    raw = raw.strip('"')
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("If-Match must be a revision number") from None
