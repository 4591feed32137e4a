"""FastAPI application factory for the project tracker."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .. import __version__
from ..config import TrackerSettings
from ..constants import DATA_DIR_NAME
from ..domain.models import User
from ..errors import InternalError, TrackerError
from ..services.registry import TrackerServices
from ..storage.container import Container
from .account_api import create_account_router
from .projects_api import create_projects_router
from .tasks_api import create_tasks_router


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid data"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "header", "path")]
    where = ".".join(loc)
    message = str(first.get("msg") or "Invalid value")
    return f"{where}: {message}" if where else message


def create_app(
    data_dir: Optional[Path] = None,
    *,
    settings: Optional[TrackerSettings] = None,
    container: Optional[Container] = None,
    enable_cors: bool = True,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        data_dir: Tracker data directory (defaults to ``./.project_tracker``).
        settings: Pre-built settings; loaded from *data_dir* and the environment when omitted.
        container: Pre-built repositories; built from *settings* when omitted.
        enable_cors: Whether to enable CORS.

    Returns:
        Configured FastAPI app.
    """
    if settings is None:
        settings = TrackerSettings.from_sources(data_dir or Path.cwd() / DATA_DIR_NAME)
    if settings.config_error:
        logger.warning("Ignoring unreadable tracker config: {}", settings.config_error)

    if container is None:
        if settings.storage == "memory":
            container = Container.in_memory()
        else:
            container = Container.from_data_dir(settings.data_dir)

    services = TrackerServices.from_container(container)

    if not settings.auth.enabled:
        default_user = settings.auth.default_user
        if container.users.get(default_user) is None:
            container.users.upsert(User(id=default_user, name=default_user))
        logger.warning("Authentication disabled; all requests act as {}", default_user)

    app = FastAPI(
        title="Project Tracker",
        description="Projects, tasks and kanban ordering scoped per user",
        version=__version__,
    )

    if enable_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.state.settings = settings
    app.state.services = services

    @app.exception_handler(TrackerError)
    async def _tracker_error(request: Request, exc: TrackerError) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error("{} {} failed: {}", request.method, request.url.path, exc.internal_message)
        elif exc.status_code >= 500:
            logger.error("{} {} failed: {} {}", request.method, request.url.path, exc.message, exc.detail or "")
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _first_validation_message(exc)})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error in {} {}", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": InternalError.public_message})

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    app.include_router(create_projects_router())
    app.include_router(create_tasks_router())
    app.include_router(create_account_router())

    return app
