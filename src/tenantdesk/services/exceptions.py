"""Shared exceptions for service layer operations."""


class AppError(Exception):
    """
    Base class for errors that carry an HTTP status.

    Raised anywhere in the request path and rendered into the response envelope by a
    single exception handler in api.main.
    """

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Malformed or missing input, reported with field-level detail."""

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.errors = errors or []
        super().__init__(message)


class BadRequestError(AppError):
    """Request is well-formed but cannot be honoured in the current state."""

    status_code = 400


class AuthenticationError(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401


class AuthorizationError(AppError):
    """Valid identity without sufficient privilege."""

    status_code = 403

    def __init__(self, message: str = "You do not have permission to access this resource") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = 404

    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"{entity} not found")


class ConflictError(AppError):
    """
    Uniqueness violation.

    Reported as 400 to match the established API contract for duplicate emails,
    role names and slugs.
    """

    status_code = 400
