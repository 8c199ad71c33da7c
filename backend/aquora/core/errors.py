from typing import Any


class ApiError(Exception):
    """Domain error carrying the HTTP status the boundary should answer with."""

    status_code = 500
    default_code: str | None = None

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code or self.default_code
        self.details = details


class ValidationFailed(ApiError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class Unauthorized(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class NotFound(ApiError):
    status_code = 404


class Conflict(ApiError):
    status_code = 409
