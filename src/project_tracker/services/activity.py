from __future__ import annotations

from ..constants import ACTIVITY_DEFAULT_LIMIT
from ..domain.models import ActivityLog
from ..errors import ValidationError
from ..storage.interfaces import ActivityRepository

MAX_ACTIVITY_LIMIT = 500


class ActivityService:
    def __init__(self, activity: ActivityRepository) -> None:
        self._activity = activity

    def recent(self, owner_id: str, limit: int = ACTIVITY_DEFAULT_LIMIT) -> list[ActivityLog]:
        if limit < 1 or limit > MAX_ACTIVITY_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_ACTIVITY_LIMIT}")
        return self._activity.list_recent(owner_id, limit)
