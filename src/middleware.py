import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response

from .logging_utils import log_api_request
from .metrics import record_http_request

REQUEST_ID_HEADER = "X-Request-ID"


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Middleware to log all HTTP requests with timing information.

    Binds a request id for structured log events emitted while the request is
    handled, and keeps browsers from caching API responses.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler in the chain

    Returns:
        Response from the route handler
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    start_time = time.perf_counter()

    # Call the route handler
    response = await call_next(request)

    duration = time.perf_counter() - start_time

    if request.url.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store"
    response.headers[REQUEST_ID_HEADER] = request_id

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    record_http_request(request.method, endpoint, response.status_code, duration)

    log_api_request(
        request=request,
        response_status=response.status_code,
        process_time_ms=duration * 1000,
    )

    return response
