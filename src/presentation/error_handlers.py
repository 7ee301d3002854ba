"""Centralized error handling for the presentation layer."""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..domain.exceptions import (
    DomainError,
    NotFoundError,
    StorageFailureError,
    ValidationError,
)
from .problem_details import ErrorCodes, ProblemDetail, ProblemDetailFactory


def _problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
    )


def _extract_field_errors(error: ValidationError) -> list[dict[str, str]]:
    """Derive a field error from the validation message, when it names one."""
    error_msg = str(error).lower()
    field = error_msg.split(" ", 1)[0]

    if "cannot be empty" in error_msg:
        code, message = ErrorCodes.FIELD_REQUIRED, f"{field.capitalize()} is required"
    elif "longer than" in error_msg:
        code, message = ErrorCodes.FIELD_TOO_LONG, f"{field.capitalize()} is too long"
    elif "control characters" in error_msg:
        code = ErrorCodes.FIELD_INVALID_FORMAT
        message = f"{field.capitalize()} contains invalid characters"
    elif "must be" in error_msg:
        code, message = ErrorCodes.FIELD_INVALID_VALUE, str(error)
    else:
        return []

    return [{"field": field, "code": code, "message": message}]


def handle_domain_error(error: DomainError, request: Request) -> JSONResponse:
    """Convert domain errors to RFC 7807 problem responses."""
    instance = str(request.url.path)
    problem: ProblemDetail

    if isinstance(error, NotFoundError):
        problem = ProblemDetailFactory.resource_not_found(
            resource_type=error.resource,
            detail=str(error),
            instance=instance,
            resource_id=error.identifier,
        )
    elif isinstance(error, ValidationError):
        problem = ProblemDetailFactory.validation_failed(
            detail=str(error),
            instance=instance,
            field_errors=_extract_field_errors(error),
        )
    elif isinstance(error, StorageFailureError):
        problem = ProblemDetailFactory.storage_unavailable(
            detail=f"The {error.operation} could not be saved. Nothing was changed.",
            instance=instance,
        )
    else:
        problem = ProblemDetailFactory.internal_server_error(
            detail="An unexpected error occurred. Please try again.",
            instance=instance,
        )

    return _problem_response(problem)


def handle_request_validation_error(
    error: RequestValidationError, request: Request
) -> JSONResponse:
    """Convert FastAPI request validation errors to a 400 problem response."""
    field_errors = []
    for item in error.errors():
        field_name = ".".join(
            str(loc) for loc in item["loc"] if loc not in ("body", "path", "query")
        )
        field_errors.append(
            {
                "field": field_name or "unknown",
                "code": item["type"],
                "message": item["msg"],
            }
        )

    problem = ProblemDetailFactory.validation_failed(
        detail="Request validation failed",
        instance=str(request.url.path),
        field_errors=field_errors,
    )
    return _problem_response(problem)


def handle_unexpected_error(error: Exception, request: Request) -> JSONResponse:
    problem = ProblemDetailFactory.internal_server_error(
        detail="An unexpected error occurred. Please try again.",
        instance=str(request.url.path),
    )
    return _problem_response(problem)
