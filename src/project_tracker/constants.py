DATA_DIR_NAME = ".project_tracker"
CONFIG_FILE = "config.yaml"
PROJECTS_FILE = "projects.yaml"
TASKS_FILE = "tasks.yaml"
USERS_FILE = "users.yaml"
ACTIVITY_FILE = "activity.jsonl"
SCHEMA_VERSION = 1

PROJECT_STATUSES = ("planning", "in_progress", "completed", "archived")
DEFAULT_PROJECT_STATUS = "planning"

TASK_STATUSES = ("todo", "in_progress", "done")
DEFAULT_TASK_STATUS = "todo"

TASK_PRIORITIES = ("low", "medium", "high")
DEFAULT_TASK_PRIORITY = "medium"

THEME_PREFERENCES = ("light", "dark", "system")

# Fields the store refuses to change through an update.
PROTECTED_FIELDS = frozenset({"id", "owner_id", "created_at", "revision"})

UPCOMING_WINDOW_DAYS = 7
DASHBOARD_LIST_LIMIT = 5
ACTIVITY_DEFAULT_LIMIT = 50
