"""Domain-specific exceptions."""


class DomainError(Exception):
    """Base exception for domain errors."""

    pass


class ValidationError(DomainError):
    """Raised when an operation's preconditions are violated."""

    pass


class NotFoundError(DomainError):
    """Raised when a referenced version or item does not exist."""

    def __init__(self, resource: str, identifier: object):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} {identifier} not found")


class StorageFailureError(DomainError):
    """Raised when a transaction could not commit.

    The whole operation must be treated as not having happened.
    """

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Storage failure during {operation}{detail}")
