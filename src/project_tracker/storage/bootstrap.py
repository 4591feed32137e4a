from __future__ import annotations

from pathlib import Path

from ..constants import ACTIVITY_FILE, CONFIG_FILE, PROJECTS_FILE, SCHEMA_VERSION, TASKS_FILE, USERS_FILE
from ..io_utils import _atomic_write_yaml, _load_data_with_error

DATA_FILES = {
    "projects": PROJECTS_FILE,
    "tasks": TASKS_FILE,
    "users": USERS_FILE,
    "activity": ACTIVITY_FILE,
}


def ensure_data_dir(data_dir: Path) -> Path:
    """Create the data directory and empty collection files if they are missing."""
    data_dir.mkdir(parents=True, exist_ok=True)

    for key, file_name in DATA_FILES.items():
        target = data_dir / file_name
        if target.exists():
            continue
        if file_name.endswith(".yaml"):
            _atomic_write_yaml(target, {"version": SCHEMA_VERSION, key: []})
        else:
            target.touch()

    config_path = data_dir / CONFIG_FILE
    config, err = _load_data_with_error(config_path, {})
    if err is None:
        config["schema_version"] = SCHEMA_VERSION
        config.setdefault("storage", {"backend": "file"})
        config.setdefault("logging", {"level": "INFO"})
        _atomic_write_yaml(config_path, config)

    return data_dir
