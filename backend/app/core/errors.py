"""Application error taxonomy and the JSON error envelope."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "INTERNAL_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        errors: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        self.headers = headers
        super().__init__(self.message)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NOT_FOUND"
    default_message = "Resource not found"


class MemberNotFound(NotFoundError):
    error = "MEMBER_NOT_FOUND"
    default_message = "Member not found"


class ReservationNotFound(NotFoundError):
    error = "RESERVATION_NOT_FOUND"
    default_message = "Reservation not found"


class ApplicationNotFound(NotFoundError):
    error = "APPLICATION_NOT_FOUND"
    default_message = "Reservation application not found"


class LocationNotFound(NotFoundError):
    error = "LOCATION_NOT_FOUND"
    default_message = "Location not found"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "VALIDATION_ERROR"
    default_message = "Invalid request"


class ConflictError(AppError):
    """Optimistic version mismatch, lock timeout or a uniqueness clash."""

    status_code = status.HTTP_409_CONFLICT
    error = "CONFLICT"
    default_message = "The resource was modified concurrently, please retry"


class DuplicateApplication(ConflictError):
    error = "DUPLICATE_APPLICATION"
    default_message = "An active application already exists for this reservation"


class AlreadyCancelled(ConflictError):
    error = "ALREADY_CANCELLED"
    default_message = "The application is already cancelled"


class CapacityExceeded(ConflictError):
    error = "CAPACITY_EXCEEDED"
    default_message = "The reservation has no free slot"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "FORBIDDEN"
    default_message = "Insufficient permissions"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "UNAUTHORIZED"
    default_message = "Could not validate credentials"

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_429_TOO_MANY_REQUESTS: "TOO_MANY_REQUESTS",
}


def error_body(
    status_code: int,
    error: str,
    message: str,
    errors: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build the error envelope returned for every failed request."""
    body: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "status": status_code,
        "error": error,
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return body


def _field_name(loc: tuple[Any, ...]) -> str:
    parts = [str(part) for part in loc if part not in {"body", "query", "path"}]
    return ".".join(parts) or "request"


async def _handle_app_error(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.error, exc.message, exc.errors),
        headers=exc.headers,
    )


async def _handle_validation_error(
    _: Request, exc: RequestValidationError
) -> JSONResponse:
    errors: dict[str, str] = {}
    for item in exc.errors():
        errors.setdefault(_field_name(tuple(item.get("loc", ()))), item.get("msg", "invalid"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            status.HTTP_400_BAD_REQUEST,
            "VALIDATION_ERROR",
            "Request validation failed",
            errors,
        ),
    )


async def _handle_http_exception(
    _: Request, exc: StarletteHTTPException
) -> JSONResponse:
    code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    message = exc.detail if isinstance(exc.detail, str) else code
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, code, message),
        headers=getattr(exc, "headers", None),
    )


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_ERROR",
            AppError.default_message,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope-producing handlers to the application."""
    app.add_exception_handler(AppError, _handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected)


__all__ = [
    "AlreadyCancelled",
    "AppError",
    "ApplicationNotFound",
    "CapacityExceeded",
    "ConflictError",
    "DuplicateApplication",
    "ForbiddenError",
    "LocationNotFound",
    "MemberNotFound",
    "NotFoundError",
    "ReservationNotFound",
    "UnauthorizedError",
    "ValidationFailed",
    "error_body",
    "register_exception_handlers",
]
