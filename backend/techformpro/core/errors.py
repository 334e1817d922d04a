"""API error types.

Services raise these; the handler registered in main.py renders any APIError
as the {"error": {...}} envelope using the class's status and code.
"""


class APIError(Exception):
    """Base class for errors that map to an HTTP response.

    Subclasses fix ``status_code`` and ``code`` as class attributes; either
    can be overridden per instance.

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable message returned to the client.
        status_code: HTTP status code.
        details: Optional field-level details.
    """

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ValidationError(APIError):
    """Request values the schema accepted but the operation cannot use (400)."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message, details=details)


class UnauthorizedError(APIError):
    """No valid session (401)."""

    status_code = 401
    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class NotFoundError(APIError):
    """Resource missing, or not owned by the current user (404)."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        suffix = f" with id '{resource_id}'" if resource_id else ""
        super().__init__(f"{resource}{suffix} not found")


class InvalidStateError(APIError):
    """Transition not allowed from the record's current state (422).

    E.g., moving the current step of an onboarding that is already completed.
    """

    status_code = 422
    code = "INVALID_STATE_TRANSITION"


class InternalError(APIError):
    """Unexpected server failure (500). Only the message reaches the client."""

    def __init__(self, message: str = "An unexpected error occurred") -> None:
        super().__init__(message)
