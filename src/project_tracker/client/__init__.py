from .sync import (
    LoggingNotifier,
    Notifier,
    OptimisticCommand,
    ProjectBoard,
    SyncedList,
    TaskBoard,
    replace_record,
)
from .transport import ClientError, TrackerClient

__all__ = [
    "ClientError",
    "LoggingNotifier",
    "Notifier",
    "OptimisticCommand",
    "ProjectBoard",
    "SyncedList",
    "TaskBoard",
    "TrackerClient",
    "replace_record",
]
