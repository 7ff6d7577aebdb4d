"""Shared exceptions for service layer operations."""


class ServiceError(Exception):
    """
    Base class for errors raised by the service layer.

    Each subclass carries the HTTP status the API layer should answer with;
    the mapping is applied by the exception handlers registered in api.main.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(ServiceError):
    """
    Raised when a resource does not exist or is not owned by the caller.

    The two cases are intentionally indistinguishable so that the existence of
    another user's rows is never leaked.
    """

    status_code = 404

    def __init__(self, entity_name: str) -> None:
        self.entity_name = entity_name
        super().__init__(f"{entity_name} not found")


class ValidationError(ServiceError):
    """Raised when a request is well-formed but violates a domain rule."""

    status_code = 400


class ConflictError(ServiceError):
    """Raised when a write would violate a uniqueness rule."""

    status_code = 409


class LastVersionError(ValidationError):
    """Raised when deleting a version would leave its prompt with none."""

    def __init__(self) -> None:
        super().__init__("Cannot delete the only version of a prompt")
