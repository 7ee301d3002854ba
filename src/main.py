import socket
from contextlib import asynccontextmanager
from typing import Final

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.future import Engine

from .application.notifier import ChangeBroadcaster
from .config import settings
from .domain.exceptions import DomainError
from .infrastructure.database.database import create_db_engine, init_db
from .logging_config import get_logger, setup_logging
from .logging_utils import log_startup
from .middleware import log_requests_middleware
from .presentation.api_routes import api_router
from .presentation.error_handlers import (
    handle_domain_error,
    handle_request_validation_error,
    handle_unexpected_error,
)
from .presentation.snapshot_routes import snapshot_router
from .telemetry import setup_telemetry


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Setup logging first
    setup_logging()
    logger = get_logger(__name__)

    # Initialize database schema once at startup
    init_db(app.state.engine)
    logger.info("Database initialized", url=settings.effective_database_url)

    hostname = socket.gethostname()
    try:
        ip_addr = socket.gethostbyname(hostname)
    except OSError:
        ip_addr = "unknown"
    log_startup(hostname, ip_addr, settings.effective_database_url, settings.debug)

    yield

    logger.info("Application shutdown completed")


def create_app(engine: Engine | None = None) -> FastAPI:
    """Build the application around an engine and a change broadcaster."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
        description="""
**Signboard** keeps the content of building lobby displays (service status,
announcement cards and an advisory ticker) as an editable draft and publishes
it as numbered, immutable versions.

## Workflow

- **Edit** the draft through the collection and config endpoints. Deleting
  only marks an item; it disappears on the next publish.
- **Check** pending changes with `GET /api/v1/snapshots/draft-status`.
- **Publish** with `POST /api/v1/snapshots`. Displays listening on
  `/api/v1/events-stream` receive a refresh event.
- **Go back** with discard, full restore or selective item restore.

Errors are returned as RFC 7807 problem details.
        """.strip(),
        openapi_tags=[
            {"name": "snapshots", "description": "Publish, compare and restore"},
            {"name": "status", "description": "Building service status rows"},
            {"name": "announcements", "description": "Announcement cards"},
            {"name": "advisories", "description": "Advisory ticker messages"},
            {"name": "config", "description": "Building identity and speeds"},
            {"name": "live", "description": "Refresh notifications for displays"},
        ],
    )

    app.state.engine = engine or create_db_engine(settings.effective_database_url)
    app.state.broadcaster = ChangeBroadcaster(
        max_pending=settings.event_stream_queue_size
    )

    # Setup OpenTelemetry tracing
    setup_telemetry(app)

    app.middleware("http")(log_requests_middleware)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        """Global handler for domain-specific errors."""
        logger = get_logger(__name__)
        logger.warning(
            "Domain error occurred",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return handle_domain_error(exc, request)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Global handler for Pydantic validation errors."""
        logger = get_logger(__name__)
        logger.warning(
            "Request validation error occurred",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )
        return handle_request_validation_error(exc, request)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Global handler for unexpected errors."""
        logger = get_logger(__name__)
        logger.error(
            "Unexpected error occurred",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
            exc_info=True,
        )
        return handle_unexpected_error(exc, request)

    @app.get("/health", tags=["live"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": settings.version}

    # Include routers
    app.include_router(snapshot_router)
    app.include_router(api_router)

    return app


app: Final = create_app()
