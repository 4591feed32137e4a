"""Configure loguru sinks and format activity entries for log output."""

from __future__ import annotations

import sys
from typing import Any

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def summarize_activity(entry: Any) -> dict[str, Any]:
    """Render a compact, JSON-friendly summary of an activity entry.

    Args:
        entry: ActivityLog instance (or None).

    Returns:
        A dictionary suitable for logging or CLI output.
    """
    if entry is None:
        return {"action": None}
    d: dict[str, Any] = {"action": getattr(entry, "action", None)}
    for attr in ("project_id", "task_id"):
        value = getattr(entry, attr, None)
        if value is not None:
            d[attr] = value
    details = getattr(entry, "details", "")
    if details:
        d["details"] = details if len(details) <= 120 else details[:117] + "..."
    return d
