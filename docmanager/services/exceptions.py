class ServiceError(Exception):
    """Base exception for all service-layer errors."""


class ValidationError(ServiceError):
    """Raised for caller-correctable input: duplicate names, unknown references,
    a document type that is still in use."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(ServiceError):
    """Raised when an operation requires an entity that does not exist."""


class InfrastructureError(ServiceError):
    """Raised when the store, a transaction or the blob store fails."""
