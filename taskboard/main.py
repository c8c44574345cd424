"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Sequence

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings, get_settings
from .db import TaskStore
from .errors import StoreError, TaskNotFound, TaskValidationError
from .logging_setup import setup_logging
from .routers import tasks

logger = logging.getLogger(__name__)

_LOCATION_PREFIXES = {"body", "query", "path"}


def _error_field(loc: Sequence[str | int]) -> str | None:
    """Name the offending field, or None when the error is not about one."""
    names = [part for part in loc if part not in _LOCATION_PREFIXES]
    if not names or not isinstance(names[-1], str):
        return None
    return names[-1]


def register_exception_handlers(app: FastAPI) -> None:
    """Map task errors onto HTTP status codes."""

    @app.exception_handler(TaskValidationError)
    async def task_validation_handler(request: Request, exc: TaskValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": exc.message, "field": exc.field},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        logger.debug("Rejected request %s %s: %s", request.method, request.url.path, errors)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": first.get("msg", "Invalid request"),
                "field": _error_field(first.get("loc", ())),
            },
        )

    @app.exception_handler(TaskNotFound)
    async def not_found_handler(request: Request, exc: TaskNotFound):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Task not found"},
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        logger.error(
            "Store failure on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the task API application."""
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database on startup."""
        store = TaskStore(settings.database_path)
        store.init_db()
        app.state.task_store = store
        yield

    app = FastAPI(
        title=settings.app_name,
        description="Task management REST API",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(tasks.router)

    @app.get("/health")
    def health():
        """Liveness check."""
        return {"status": "ok"}

    return app


app = create_app()


def main():
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "taskboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
