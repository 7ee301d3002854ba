"""RFC 7807 Problem Details for API error responses."""

from typing import Any, Final

from fastapi import status
from pydantic import BaseModel, Field

PROBLEM_TYPE_BASE: Final = "https://signboard.dev/problems"


class ErrorCodes:
    """Machine-readable codes for field level errors."""

    VALIDATION_FAILED: Final = "validation_failed"
    FIELD_REQUIRED: Final = "field_required"
    FIELD_TOO_LONG: Final = "field_too_long"
    FIELD_INVALID_FORMAT: Final = "field_invalid_format"
    FIELD_INVALID_VALUE: Final = "field_invalid_value"
    RESOURCE_NOT_FOUND: Final = "resource_not_found"
    STORAGE_UNAVAILABLE: Final = "storage_unavailable"
    INTERNAL_ERROR: Final = "internal_error"


class ProblemDetail(BaseModel):
    type: str = Field(description="URI identifying the problem type")
    title: str = Field(description="Short, human-readable summary")
    status: int = Field(description="HTTP status code")
    detail: str | None = Field(None, description="Explanation of this occurrence")
    instance: str | None = Field(None, description="Request path that failed")


class ValidationProblemDetail(ProblemDetail):
    errors: list[dict[str, str]] | None = Field(
        None, description="Field level errors"
    )


class NotFoundProblemDetail(ProblemDetail):
    resource_type: str | None = None
    resource_id: str | None = None


class ProblemDetailFactory:
    """Builds the problem documents the API returns."""

    @staticmethod
    def validation_failed(
        detail: str,
        instance: str | None = None,
        field_errors: list[dict[str, str]] | None = None,
    ) -> ValidationProblemDetail:
        return ValidationProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/validation-failed",
            title="Validation Failed",
            status=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            instance=instance,
            errors=field_errors or None,
        )

    @staticmethod
    def resource_not_found(
        resource_type: str,
        detail: str,
        instance: str | None = None,
        resource_id: Any = None,
    ) -> NotFoundProblemDetail:
        return NotFoundProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/resource-not-found",
            title="Resource Not Found",
            status=status.HTTP_404_NOT_FOUND,
            detail=detail,
            instance=instance,
            resource_type=resource_type,
            resource_id=None if resource_id is None else str(resource_id),
        )

    @staticmethod
    def storage_unavailable(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/storage-unavailable",
            title="Storage Unavailable",
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            instance=instance,
        )

    @staticmethod
    def internal_server_error(
        detail: str, instance: str | None = None
    ) -> ProblemDetail:
        return ProblemDetail(
            type=f"{PROBLEM_TYPE_BASE}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            instance=instance,
        )
