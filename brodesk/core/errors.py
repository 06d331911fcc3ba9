import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class UnauthenticatedError(AppError):
    """No usable session: missing, expired or malformed token."""

    def __init__(
        self,
        message: str = "Authentication required.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status.HTTP_401_UNAUTHORIZED, "UNAUTHENTICATED", message, details)


class ForbiddenError(AppError):
    """The actor is authenticated but may not perform the action."""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status.HTTP_403_FORBIDDEN, "FORBIDDEN", message, details)


class NotFoundError(AppError):
    def __init__(
        self,
        message: str = "Resource not found.",
        details: dict[str, Any] | None = None,
        code: str = "NOT_FOUND",
    ) -> None:
        super().__init__(status.HTTP_404_NOT_FOUND, code, message, details)


class InputValidationError(AppError):
    """Submitted data was rejected before reaching the store."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: str = "VALIDATION_ERROR",
    ) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, code, message, details)


class StoreError(AppError):
    """The ticket store could not be reached or rejected the operation."""

    def __init__(
        self,
        message: str = "Ticket store is unavailable.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status.HTTP_503_SERVICE_UNAVAILABLE, "STORE_UNAVAILABLE", message, details)


class SinkError(AppError):
    """A notification could not be delivered."""

    def __init__(
        self,
        message: str = "Notification delivery failed.",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status.HTTP_502_BAD_GATEWAY, "NOTIFICATION_FAILED", message, details)


def error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
    )


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        code="VALIDATION_ERROR",
        message="Request validation failed.",
        details={"issues": exc.errors()},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_SERVER_ERROR",
        message="Unexpected server error.",
        details={"reason": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
