"""
Error types and the JSON error envelope for the agency CRM API.

Every failure leaves the service as {"error": {"code", "message", "details"}}
with an X-Correlation-ID header; tracebacks stay in the logs.

Status codes in use:
- 400 VALIDATION_ERROR: a service rejected a field
- 401 AUTHENTICATION_ERROR / SESSION_EXPIRED: bad token or idle session
- 402 TRIAL_EXPIRED: trial over and nothing paid
- 404 NOT_FOUND: missing or foreign record, unknown route
- 405 METHOD_NOT_ALLOWED
- 409 CONFLICT: duplicate payment reference or policy number
- 422 VALIDATION_ERROR: request body did not parse
- 500 INTERNAL_ERROR
- 503 SERVICE_UNAVAILABLE
"""

import logging
import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class AppError(Exception):
    """
    Base for every error the API reports to a client.

    `code` is the stable machine-readable name; `details` is extra JSON.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """The response body for this error."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppError):
    """A field failed a business rule (400)."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class AuthenticationError(AppError):
    """Missing, invalid or expired session (401)."""

    def __init__(
        self,
        message: str = "Authentication required",
        details: Optional[dict[str, Any]] = None,
        code: str = "AUTHENTICATION_ERROR",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class PaymentRequiredError(AppError):
    """Access requires payment (402)."""

    def __init__(
        self,
        message: str = "An active subscription is required",
        details: Optional[dict[str, Any]] = None,
        code: str = "PAYMENT_REQUIRED",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            details=details,
        )


class NotFoundError(AppError):
    """Record missing or owned by another agent (404)."""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(
            code="NOT_FOUND",
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ConflictError(AppError):
    """Duplicate of an existing record (409)."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(
            code="CONFLICT",
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class ServiceUnavailableError(AppError):
    """A backing service is down (503)."""

    def __init__(self, message: str = "Service temporarily unavailable"):
        super().__init__(
            code="SERVICE_UNAVAILABLE",
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


CORRELATION_HEADER = "X-Correlation-ID"

# Error codes for framework-raised HTTP errors (unknown routes, wrong methods)
HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "AUTHENTICATION_ERROR",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def generate_correlation_id() -> str:
    """New random correlation id."""
    return str(uuid.uuid4())


def get_correlation_id(request: Request) -> str:
    """
    Correlation ID for the request.

    The middleware stores one on request.state for the whole request; before
    that, the caller's X-Correlation-ID header is honoured.
    """
    assigned = getattr(request.state, "correlation_id", None)
    if assigned:
        return assigned
    return request.headers.get(CORRELATION_HEADER) or generate_correlation_id()


def error_response(request: Request, error: AppError) -> JSONResponse:
    """Render an AppError in the standard envelope, tagged with the correlation ID."""
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_dict(),
        headers={CORRELATION_HEADER: get_correlation_id(request)},
    )


def _request_context(request: Request) -> dict:
    return {
        "correlation_id": get_correlation_id(request),
        "path": request.url.path,
        "method": request.method,
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Exception handler for AppError raised from routes and dependencies."""
    logger.warning(
        "Application error",
        extra={**_request_context(request), "error_code": exc.code, "status_code": exc.status_code},
    )
    return error_response(request, exc)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Framework HTTP errors (404 for unknown routes, 405, ...) in the standard envelope."""
    error = AppError(
        code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        message=str(exc.detail),
        status_code=exc.status_code,
    )
    logger.info(
        "HTTP error",
        extra={**_request_context(request), "error_code": error.code, "status_code": exc.status_code},
    )
    response = error_response(request, error)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters: 422 VALIDATION_ERROR with per-field messages."""
    errors = [
        {
            "field": ".".join(str(part) for part in item.get("loc", ())),
            "message": item.get("msg", ""),
            "type": item.get("type", ""),
        }
        for item in exc.errors()
    ]
    error = AppError(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )
    logger.info(
        "Request validation failed",
        extra={**_request_context(request), "fields": [e["field"] for e in errors]},
    )
    return error_response(request, error)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Assigns every request a correlation ID and converts unhandled exceptions
    into a 500 INTERNAL_ERROR body.

    IMPORTANT: Stack traces are NEVER returned to clients.
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = get_correlation_id(request)
        request.state.correlation_id = correlation_id

        try:
            response = await call_next(request)
        except Exception as e:
            # Full exception stays server-side
            logger.exception(
                "Unhandled exception",
                extra={**_request_context(request), "error_type": type(e).__name__},
            )
            response = error_response(
                request,
                AppError(
                    code="INTERNAL_ERROR",
                    message="An unexpected error occurred",
                    details={"correlation_id": correlation_id},
                ),
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


def install_error_handling(app: FastAPI) -> None:
    """Register the middleware and every exception handler on the app."""
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
