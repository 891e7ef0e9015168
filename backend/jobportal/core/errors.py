"""
Error taxonomy and exception handlers.

Every failure the portal reports is a PortalError subclass carrying a stable
machine-readable code. The handlers registered by setup_error_handlers turn
those (and framework/database faults) into a uniform JSON envelope:

    {"error": {"code": ..., "message": ..., "path": ..., "method": ..., "details": [...]}}

Unhandled faults become a generic 500 so internals never reach the client.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'bearer\s+[A-Za-z0-9_\-\.]+', re.IGNORECASE),
]


def sanitize_error_message(message: str) -> str:
    """Remove credentials and tokens from a message before it is logged."""
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


@dataclass
class FieldError:
    """A single violated input field."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class PortalError(Exception):
    """Base class for failures mapped to a stable outcome code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def details(self) -> Optional[list[dict[str, Any]]]:
        return None

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return None


class Unauthenticated(PortalError):
    """Missing, malformed, expired or otherwise invalid credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    default_message = "Could not validate credentials"

    @property
    def headers(self) -> Optional[dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(PortalError):
    """Role or ownership check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_message = "You are not authorized to perform this action."


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Resource not found."


class Conflict(PortalError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Resource already exists."


class ValidationFailed(PortalError):
    """Malformed input. Carries every violated field, not just the first."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_FAILED"
    default_message = "Request validation failed"

    def __init__(self, errors: list[FieldError], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message)

    @property
    def details(self) -> Optional[list[dict[str, Any]]]:
        return [error.to_dict() for error in self.errors]


class ConfigurationError(RuntimeError):
    """Fatal startup misconfiguration (signing key, connection string)."""


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI puts in front of field names
    parts = [str(part) for part in loc]
    if len(parts) > 1 and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


def _field_message(error: dict) -> str:
    # Custom validators surface as "Value error, <message>"
    message = error.get("msg", "Invalid value")
    if error.get("type") == "value_error":
        message = message.removeprefix("Value error, ")
    return message


def validation_error_from_request(exc: RequestValidationError) -> ValidationFailed:
    errors = [
        FieldError(
            field=_field_name(tuple(error.get("loc", ()))),
            message=sanitize_error_message(_field_message(error)),
        )
        for error in exc.errors()
    ]
    return ValidationFailed(errors)


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[list[dict[str, Any]]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "path": str(request.url.path),
            "method": request.method,
        }
    }
    if details is not None:
        body["error"]["details"] = details

    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["error"]["request_id"] = request_id

    return JSONResponse(status_code=status_code, content=body, headers=headers)


def setup_error_handlers(app: FastAPI) -> None:
    """
    Register exception handlers on the FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(
                f"{exc.code}: {request.method} {request.url.path} - "
                f"{sanitize_error_message(exc.message)}"
            )
        return error_response(
            request,
            exc.status_code,
            exc.code,
            exc.message,
            details=exc.details,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        failure = validation_error_from_request(exc)
        logger.warning(
            f"Validation error: {request.method} {request.url.path} - "
            f"Fields: {[error.field for error in failure.errors]}"
        )
        return error_response(
            request,
            failure.status_code,
            failure.code,
            failure.message,
            details=failure.details,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(
            request,
            exc.status_code,
            "HTTP_EXCEPTION",
            sanitize_error_message(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(OperationalError)
    async def database_unavailable_handler(request: Request, exc: OperationalError):
        logger.error(
            f"Database operational error: {request.method} {request.url.path}",
            exc_info=True,
        )
        return error_response(
            request,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "DATABASE_UNAVAILABLE",
            "Database service temporarily unavailable",
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )
        return error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "INTERNAL_SERVER_ERROR",
            "An unexpected error occurred",
        )
