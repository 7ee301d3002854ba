"""Structured log records shared across layers.

Each helper emits one structlog event with a fixed set of keys, so log
queries can rely on them: ``request_id`` (bound by the request middleware),
``operation`` and ``target`` for content changes, ``field`` for rejected
input.
"""

from typing import Any

from fastapi import Request
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from .logging_config import get_logger

# Polled constantly by displays and health checks
_QUIET_PATHS = ("/health", "/api/v1/snapshots/latest", "/api/v1/events-stream")


def log_api_request(
    request: Request, response_status: int, process_time_ms: float | None = None
) -> None:
    """Log one handled request.

    Server errors log at error level, client errors at warning. Successful
    display polling is logged at debug level only.
    """
    logger = get_logger("signboard.api")
    context: dict[str, Any] = {
        "method": request.method,
        "path": request.url.path,
        "status_code": response_status,
        "client_ip": request.client.host if request.client else None,
    }
    if process_time_ms is not None:
        context["process_time_ms"] = round(process_time_ms, 2)

    if response_status >= 500:
        logger.error("Request failed", **context)
    elif response_status >= 400:
        logger.warning("Request rejected", **context)
    elif request.url.path in _QUIET_PATHS:
        logger.debug("Request handled", **context)
    else:
        logger.info("Request handled", **context)


def log_content_change(
    operation: str, target: str, success: bool = True, **context: Any
) -> None:
    """Log a write to the draft or the version history.

    Args:
        operation: What was done (create, update, mark, publish, restore_items)
        target: Collection or store touched (status, config, snapshots)
        success: False when the change was rolled back
        **context: Ids, version numbers or the storage error
    """
    logger = get_logger("signboard.content")
    if success:
        logger.info("Content changed", operation=operation, target=target, **context)
    else:
        logger.error(
            "Content change rolled back", operation=operation, target=target, **context
        )


def log_startup(
    hostname: str, ip_address: str, database_url: str, debug_mode: bool
) -> None:
    """Log where the service runs and which database it uses, without secrets."""
    try:
        database = make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        database = "unparseable URL"
    get_logger("signboard.system").info(
        "Application startup",
        hostname=hostname,
        ip_address=ip_address,
        database=database,
        debug_mode=debug_mode,
    )


def log_validation_error(field: str, value: Any, error_message: str) -> None:
    """Log rejected editor input. Long values are cut to 100 characters."""
    get_logger("signboard.validation").warning(
        "Validation failed",
        field=field,
        value=str(value)[:100],
        error=error_message,
    )
