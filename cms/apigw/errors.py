"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module traduit les erreurs du domaine de contenu (validation, conflit, absence, stockage
indisponible) et les exceptions HTTP en enveloppes `{code, message, trace_id, details}` cohérentes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cms.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_SERVICE_UNAVAILABLE,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
)
from cms.domain.errors import (
    CacheInvalidationError,
    ConflictError,
    NotFoundError,
    StorageUnavailable,
    ValidationError,
)

log = structlog.get_logger(__name__)


class ErrorCodes:
    """Standard error codes for the API."""

    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


_HTTP_STATUS_CODES = {
    HTTP_BAD_REQUEST: ErrorCodes.BAD_REQUEST,
    HTTP_UNAUTHORIZED: ErrorCodes.UNAUTHORIZED,
    HTTP_NOT_FOUND: ErrorCodes.NOT_FOUND,
    HTTP_CONFLICT: ErrorCodes.CONFLICT,
    HTTP_UNPROCESSABLE_ENTITY: ErrorCodes.VALIDATION_ERROR,
    HTTP_INTERNAL_SERVER_ERROR: ErrorCodes.INTERNAL_ERROR,
    HTTP_SERVICE_UNAVAILABLE: ErrorCodes.SERVICE_UNAVAILABLE,
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    message: str
    trace_id: str | None = None
    details: dict[str, Any] | None = None


class APIError(HTTPException):
    """Custom API error with standard envelope."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


def not_found(message: str) -> APIError:
    """Create a 404 Not Found error."""
    return APIError(HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND, message)


def unauthorized(message: str) -> APIError:
    """Create a 401 Unauthorized error."""
    return APIError(HTTP_UNAUTHORIZED, ErrorCodes.UNAUTHORIZED, message)


def create_error_response(status_code: int, envelope: ErrorEnvelope) -> JSONResponse:
    """Create a standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "code": envelope.code,
            "message": envelope.message,
            "trace_id": envelope.trace_id,
            **({"details": envelope.details} if envelope.details else {}),
        },
    )


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or request state (set by middleware)."""
    trace_id = request.headers.get("X-Trace-ID") or request.headers.get("X-Request-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "request_id", None)


def _respond(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    trace_id = extract_trace_id(request)
    log_method = log.error if status_code >= HTTP_INTERNAL_SERVER_ERROR else log.warning
    log_method(
        "api_error",
        code=code,
        status_code=status_code,
        path=request.url.path,
        trace_id=trace_id,
        error_message=message,
    )
    return create_error_response(
        status_code, ErrorEnvelope(code=code, message=message, trace_id=trace_id, details=details)
    )


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    return _respond(request, exc.status_code, exc.code, exc.message, exc.details)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    return _respond(request, exc.status_code, code, str(exc.detail))


def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return _respond(
        request,
        HTTP_BAD_REQUEST,
        ErrorCodes.VALIDATION_ERROR,
        "Validation failed",
        {"section": exc.section, "errors": exc.errors},
    )


def handle_conflict_error(request: Request, exc: ConflictError) -> JSONResponse:
    return _respond(
        request,
        HTTP_CONFLICT,
        ErrorCodes.CONFLICT,
        str(exc),
        {"section": exc.section, "reason": exc.reason},
    )


def handle_not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return _respond(request, HTTP_NOT_FOUND, ErrorCodes.NOT_FOUND, str(exc))


def handle_unavailable_error(
    request: Request, exc: StorageUnavailable | CacheInvalidationError
) -> JSONResponse:
    return _respond(request, HTTP_SERVICE_UNAVAILABLE, ErrorCodes.SERVICE_UNAVAILABLE, str(exc))


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without leaking internals."""
    log.exception("unexpected_error", path=request.url.path, exception_type=type(exc).__name__)
    return create_error_response(
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorEnvelope(
            code=ErrorCodes.INTERNAL_ERROR,
            message="An unexpected error occurred",
            trace_id=extract_trace_id(request),
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    """Branche les handlers d'erreurs sur l'application."""
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(ConflictError, handle_conflict_error)
    app.add_exception_handler(NotFoundError, handle_not_found_error)
    app.add_exception_handler(StorageUnavailable, handle_unavailable_error)
    app.add_exception_handler(CacheInvalidationError, handle_unavailable_error)
    app.add_exception_handler(Exception, handle_generic_exception)
