from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Iterable, Optional

from ..errors import ValidationError
from ..utils import _parse_iso

# Positions beyond this are almost certainly client bugs, not real lane orderings.
MAX_POSITION = 1e15


def require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


def optional_text(value: Any, field: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value


def check_choice(value: Any, choices: Iterable[str], field: str) -> str:
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(f"{field} must be one of {', '.join(allowed)}")
    return value


def parse_date(value: Any, field: str) -> Optional[datetime]:
    """Read an optional ISO-8601 date; empty values clear the field."""
    if value is None or value == "":
        return None
    parsed = _parse_iso(value)
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    return parsed


def check_position(value: Any, field: str = "kanbanPosition") -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    if not math.isfinite(value) or abs(value) > MAX_POSITION:
        raise ValidationError(f"{field} must be a finite number")
    return value


def check_sort(value: Optional[str], choices: Iterable[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    return check_choice(value, choices, "sort")
