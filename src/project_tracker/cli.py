from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from .config import TrackerSettings
from .constants import DATA_DIR_NAME, PROJECT_STATUSES, TASK_PRIORITIES, TASK_STATUSES, THEME_PREFERENCES
from .domain.models import User
from .errors import TrackerError
from .logging_utils import configure_logging
from .server import create_app
from .server.auth import create_access_token
from .services import TrackerServices
from .services.projects import PROJECT_SORTS
from .services.tasks import TASK_SORTS
from .storage import Container


def _resolve_data_dir(data_dir: Optional[str]) -> Path:
    return Path(data_dir).expanduser().resolve() if data_dir else (Path.cwd() / DATA_DIR_NAME).resolve()


def _settings(args: argparse.Namespace) -> TrackerSettings:
    return TrackerSettings.from_sources(_resolve_data_dir(args.data_dir))


def _ctx(args: argparse.Namespace) -> tuple[TrackerSettings, TrackerServices]:
    settings = _settings(args)
    configure_logging(settings.log_level)
    return settings, TrackerServices.from_container(Container.from_data_dir(settings.data_dir))


def _owner(args: argparse.Namespace, settings: TrackerSettings) -> str:
    return args.user or settings.auth.default_user


def _emit(payload: object) -> None:
    sys.stdout.write(json.dumps(payload, indent=2) + '\n')


def _user_add(args: argparse.Namespace) -> int:
    _, services = _ctx(args)
    users = services.container.users
    if args.email and users.get_by_email(args.email) is not None:
        sys.stderr.write(f"Email already registered: {args.email}\n")
        return 1
    user = User(name=args.name, email=args.email or '', theme_preference=args.theme)
    if args.id:
        if users.get(args.id) is not None:
            sys.stderr.write(f"User already exists: {args.id}\n")
            return 1
        user.id = args.id
    users.upsert(user)
    _emit({'user': user.to_api()})
    return 0


def _user_list(args: argparse.Namespace) -> int:
    _, services = _ctx(args)
    _emit({'users': [user.to_api() for user in services.container.users.list()]})
    return 0


def _token(args: argparse.Namespace) -> int:
    settings, services = _ctx(args)
    if services.container.users.get(args.user_id) is None and not args.force:
        sys.stderr.write(f"Unknown user: {args.user_id} (use --force to sign anyway)\n")
        return 1
    token = create_access_token(args.user_id, settings.auth)
    sys.stdout.write(token + '\n')
    return 0


def _project_list(args: argparse.Namespace) -> int:
    settings, services = _ctx(args)
    try:
        projects = services.projects.list_projects(
            _owner(args, settings), status=args.status, search=args.search, sort=args.sort,
        )
    except TrackerError as exc:
        sys.stderr.write(exc.message + '\n')
        return 1
    _emit({'projects': [project.to_api() for project in projects]})
    return 0


def _task_list(args: argparse.Namespace) -> int:
    settings, services = _ctx(args)
    try:
        tasks = services.tasks.list_tasks(
            _owner(args, settings),
            status=args.status,
            priority=args.priority,
            project_id=args.project_id,
            search=args.search,
            sort=args.sort,
        )
    except TrackerError as exc:
        sys.stderr.write(exc.message + '\n')
        return 1
    _emit({'tasks': [task.to_api() for task in tasks]})
    return 0


def _dashboard(args: argparse.Namespace) -> int:
    settings, services = _ctx(args)
    summary = services.dashboard.summary(_owner(args, settings))
    if args.json:
        _emit(summary.to_api())
        return 0

    console = Console()
    totals = Table(title="Totals")
    totals.add_column("Metric", style="cyan")
    totals.add_column("Count", justify="right")
    for key, value in summary.totals.items():
        totals.add_row(key, str(value))
    console.print(totals)

    progress = Table(title="Project progress")
    progress.add_column("Project", style="cyan")
    progress.add_column("Done", justify="right")
    progress.add_column("Total", justify="right")
    progress.add_column("%", justify="right")
    for row in summary.project_progress:
        progress.add_row(row["name"], str(row["done"]), str(row["total"]), str(row["percent"]))
    console.print(progress)

    upcoming = Table(title="Due in the next 7 days")
    upcoming.add_column("Task", style="cyan")
    upcoming.add_column("Priority")
    upcoming.add_column("Due")
    for task in summary.upcoming_tasks:
        due = task.due_date.date().isoformat() if task.due_date else ""
        upcoming.add_row(task.title, task.priority, due)
    console.print(upcoming)

    recent = Table(title="Recent activity")
    recent.add_column("When")
    recent.add_column("Action", style="magenta")
    recent.add_column("Details")
    for entry in summary.recent_activity:
        recent.add_row(entry.timestamp.strftime("%Y-%m-%d %H:%M"), entry.action, entry.details)
    console.print(recent)
    return 0


def _server(args: argparse.Namespace) -> int:
    import uvicorn

    settings = _settings(args)
    configure_logging(settings.log_level)
    app = create_app(settings=settings)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Project Tracker CLI')
    parser.add_argument('--data-dir', default=None, help=f'Tracker data directory (default: ./{DATA_DIR_NAME})')
    subparsers = parser.add_subparsers(dest='command', required=True)

    server = subparsers.add_parser('server', help='Start the API server')
    server.add_argument('--host', default='127.0.0.1')
    server.add_argument('--port', default=8000, type=int)
    server.set_defaults(func=_server)

    user = subparsers.add_parser('user', help='Manage users')
    user_sub = user.add_subparsers(dest='user_cmd', required=True)
    uadd = user_sub.add_parser('add', help='Register a user')
    uadd.add_argument('name')
    uadd.add_argument('--email', default='')
    uadd.add_argument('--id', default=None, help='Explicit user id (default: generated)')
    uadd.add_argument('--theme', default='system', choices=list(THEME_PREFERENCES))
    uadd.set_defaults(func=_user_add)
    ulist = user_sub.add_parser('list', help='List users')
    ulist.set_defaults(func=_user_list)

    token = subparsers.add_parser('token', help='Issue a bearer token for a user')
    token.add_argument('user_id')
    token.add_argument('--force', action='store_true', help='Sign even if the user is not registered')
    token.set_defaults(func=_token)

    project = subparsers.add_parser('project', help='Inspect projects')
    project_sub = project.add_subparsers(dest='project_cmd', required=True)
    plist = project_sub.add_parser('list', help='List projects')
    plist.add_argument('--user', default=None, help='Owner id (default: configured default user)')
    plist.add_argument('--status', default=None, choices=list(PROJECT_STATUSES))
    plist.add_argument('--search', default=None)
    plist.add_argument('--sort', default=None, choices=list(PROJECT_SORTS))
    plist.set_defaults(func=_project_list)

    task = subparsers.add_parser('task', help='Inspect tasks')
    task_sub = task.add_subparsers(dest='task_cmd', required=True)
    tlist = task_sub.add_parser('list', help='List tasks')
    tlist.add_argument('--user', default=None, help='Owner id (default: configured default user)')
    tlist.add_argument('--status', default=None, choices=list(TASK_STATUSES))
    tlist.add_argument('--priority', default=None, choices=list(TASK_PRIORITIES))
    tlist.add_argument('--project-id', default=None)
    tlist.add_argument('--search', default=None)
    tlist.add_argument('--sort', default=None, choices=list(TASK_SORTS))
    tlist.set_defaults(func=_task_list)

    dashboard = subparsers.add_parser('dashboard', help='Show the dashboard summary')
    dashboard.add_argument('--user', default=None, help='Owner id (default: configured default user)')
    dashboard.add_argument('--json', action='store_true', help='Print JSON instead of tables')
    dashboard.set_defaults(func=_dashboard)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, 'func', None)
    if handler is None:
        parser.print_help()
        return 1
    return int(handler(args) or 0)


if __name__ == '__main__':
    raise SystemExit(main())
