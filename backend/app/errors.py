from typing import Any

from fastapi import status


class AppError(Exception):
    code: str = "APP_ERROR"
    message: str = "Application error"
    status_code: int = status.HTTP_400_BAD_REQUEST
    details: Any | None = None

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
    ):
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        if details is not None:
            self.details = details

        super().__init__(self.message)


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    message = "Validation error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(AppError):
    code = "NOT_FOUND"
    message = "Resource not found"
    status_code = status.HTTP_404_NOT_FOUND


class AuthError(AppError):
    code = "AUTH_ERROR"
    message = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionError(AppError):  # type: ignore[override]
    code = "PERMISSION_DENIED"
    message = "Permission denied"
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(AppError):
    code = "CONFLICT_ERROR"
    message = "Resource conflict"
    status_code = status.HTTP_409_CONFLICT


class RateLimitError(AppError):
    code = "RATE_LIMITED"
    message = "Too many attempts, try again later"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    message = "Server error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# Errors a handler may answer with for a bare HTTP status
STATUS_ERRORS: tuple[type[AppError], ...] = (
    ValidationError,
    AuthError,
    PermissionError,
    NotFoundError,
    ConflictError,
    RateLimitError,
)


def error_for_status(status_code: int) -> type[AppError]:
    # 422 comes from request parsing and is reported like any other bad input
    if status_code == status.HTTP_422_UNPROCESSABLE_ENTITY:
        return ValidationError
    for error_cls in STATUS_ERRORS:
        if error_cls.status_code == status_code:
            return error_cls
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return InternalError
    return AppError


def error_payload(
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    return {"error": {"code": code, "message": message, "details": details}}
