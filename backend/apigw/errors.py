"""Gestion standardisée des erreurs API avec enveloppes d'erreur.

Ce module convertit les erreurs du domaine (configuration, authentification amont, échec de
fan-out) et les erreurs HTTP/validation en une enveloppe JSON unique `{code, detail, trace_id}`.
Aucune réponse partielle n'accompagne jamais une erreur.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from backend.core.http_constants import (
    HTTP_BAD_GATEWAY,
    HTTP_GATEWAY_TIMEOUT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_UNPROCESSABLE_ENTITY,
)
from backend.domain.errors import AuthenticationError, ConfigurationError, UpstreamError

log = structlog.get_logger(__name__)


# Common error codes
class ErrorCodes:
    """Standard error codes for the API."""

    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"


_HTTP_CODES = {
    400: ErrorCodes.BAD_REQUEST,
    404: ErrorCodes.NOT_FOUND,
    405: ErrorCodes.METHOD_NOT_ALLOWED,
    422: ErrorCodes.VALIDATION_ERROR,
    500: ErrorCodes.INTERNAL_ERROR,
}


@dataclass
class ErrorEnvelope:
    """Standard error envelope for API responses."""

    code: str
    detail: str
    trace_id: str | None = None


def extract_trace_id(request: Request) -> str | None:
    """Extract trace ID from request headers or request state."""
    trace_id = request.headers.get("X-Request-ID")
    if trace_id:
        return trace_id
    return getattr(request.state, "trace_id", None)


def create_error_response(
    request: Request, status_code: int, code: str, detail: str
) -> JSONResponse:
    """Create a standardized error response."""
    envelope = ErrorEnvelope(code=code, detail=detail, trace_id=extract_trace_id(request))
    return JSONResponse(
        status_code=status_code,
        content={"code": envelope.code, "detail": envelope.detail, "trace_id": envelope.trace_id},
    )


def handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
    log.error("configuration_error", error=str(exc))
    return create_error_response(
        request, HTTP_INTERNAL_SERVER_ERROR, ErrorCodes.CONFIGURATION_ERROR, str(exc)
    )


def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Le corps amont reste dans les logs; l'appelant reçoit un message générique."""
    log.error("authentication_error", status_code=exc.status_code, body=exc.body)
    return create_error_response(
        request,
        HTTP_BAD_GATEWAY,
        ErrorCodes.AUTHENTICATION_ERROR,
        "Failed to fetch token from Prokerala API.",
    )


def handle_upstream_error(request: Request, exc: UpstreamError) -> JSONResponse:
    log.error(
        "upstream_error",
        endpoint=exc.endpoint,
        kind=exc.kind.value,
        status_code=exc.status_code,
        detail=exc.detail,
    )
    if exc.status_code == HTTP_GATEWAY_TIMEOUT:
        return create_error_response(
            request, HTTP_GATEWAY_TIMEOUT, ErrorCodes.UPSTREAM_TIMEOUT, str(exc)
        )
    return create_error_response(request, HTTP_BAD_GATEWAY, ErrorCodes.UPSTREAM_ERROR, str(exc))


def _validation_detail(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return create_error_response(
        request, HTTP_UNPROCESSABLE_ENTITY, ErrorCodes.VALIDATION_ERROR, _validation_detail(exc)
    )


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPException with standard envelope."""
    code = _HTTP_CODES.get(exc.status_code, "HTTP_ERROR")
    return create_error_response(request, exc.status_code, code, str(exc.detail))


def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle generic exceptions with standard envelope."""
    log.error("unexpected_error", exception_type=type(exc).__name__, exc_info=exc)
    return create_error_response(
        request,
        HTTP_INTERNAL_SERVER_ERROR,
        ErrorCodes.INTERNAL_ERROR,
        "An unexpected error occurred",
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ConfigurationError, handle_configuration_error)
    app.add_exception_handler(AuthenticationError, handle_authentication_error)
    app.add_exception_handler(UpstreamError, handle_upstream_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_generic_exception)
