"""Load tracker settings from `.project_tracker/config.yaml` and the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .constants import CONFIG_FILE
from .io_utils import _load_data_with_error

VALID_STORAGE_BACKENDS = {"file", "memory"}
VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


def load_tracker_config(data_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional tracker config file.

    Args:
        data_dir: The tracker data directory (usually ``.project_tracker``).

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    path = data_dir / CONFIG_FILE
    if not path.exists():
        return {}, None
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class AuthSettings:
    """Session lookup configuration."""

    enabled: bool = True
    secret_key: str = "dev-secret-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours
    # Owner identity used for every request while auth is disabled.
    default_user: str = "local-user"


@dataclass
class TrackerSettings:
    data_dir: Path
    storage: str = "file"
    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=list)
    auth: AuthSettings = field(default_factory=AuthSettings)
    config_error: Optional[str] = None

    @classmethod
    def from_sources(cls, data_dir: Path) -> "TrackerSettings":
        """Merge ``config.yaml`` values with ``PROJECT_TRACKER_*`` environment overrides."""
        data_dir = data_dir.expanduser().resolve()
        config, err = load_tracker_config(data_dir)

        storage = str(_get_nested(config, "storage", "backend") or "file")
        storage = os.getenv("PROJECT_TRACKER_STORAGE", storage).strip().lower()
        if storage not in VALID_STORAGE_BACKENDS:
            storage = "file"

        log_level = str(_get_nested(config, "logging", "level") or "INFO")
        log_level = os.getenv("PROJECT_TRACKER_LOG_LEVEL", log_level).strip().upper()
        if log_level not in VALID_LOG_LEVELS:
            log_level = "INFO"

        raw_origins = _get_nested(config, "server", "cors_origins")
        cors_origins = [str(o) for o in raw_origins] if isinstance(raw_origins, list) else []

        auth_cfg = _get_nested(config, "auth")
        auth_cfg = auth_cfg if isinstance(auth_cfg, dict) else {}
        defaults = AuthSettings()
        auth = AuthSettings(
            enabled=_env_bool("PROJECT_TRACKER_AUTH_ENABLED", bool(auth_cfg.get("enabled", defaults.enabled))),
            secret_key=os.getenv("PROJECT_TRACKER_SECRET_KEY") or str(auth_cfg.get("secret_key") or defaults.secret_key),
            access_token_expire_minutes=_env_int(
                "PROJECT_TRACKER_TOKEN_EXPIRE_MINUTES",
                int(auth_cfg.get("token_expire_minutes") or defaults.access_token_expire_minutes),
            ),
            default_user=os.getenv("PROJECT_TRACKER_DEFAULT_USER") or str(auth_cfg.get("default_user") or defaults.default_user),
        )

        return cls(
            data_dir=data_dir,
            storage=storage,
            log_level=log_level,
            cors_origins=cors_origins,
            auth=auth,
            config_error=err,
        )
