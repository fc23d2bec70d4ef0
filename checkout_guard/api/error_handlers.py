"""Error Handlers — global exception handlers for the checkout API.

Invariants:
    - GuardError → structured JSON with error code, message, severity (+ its headers)
    - RequestValidationError → field-level error details
    - Exception (catch-all) → never leaks internal details
    - 4xx guard errors logged at WARNING, 5xx at ERROR
    - Server-only detail (provider response, failing store) is logged, never returned

Design Decisions:
    - Three-layer handler: domain (GuardError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the app module to wiring only
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from checkout_guard.core.errors import GuardError, ErrorSeverity
from checkout_guard.infrastructure.observability import request_id_var

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_guard_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_guard_error_handler(app: FastAPI) -> None:
    """Register checkout-boundary error handler."""

    @app.exception_handler(GuardError)
    async def guard_error_handler(request: Request, exc: GuardError):
        """Handle all domain/infrastructure errors."""
        level = logging.ERROR if exc.http_status >= 500 else logging.WARNING
        detail = getattr(exc, "detail", None)
        store = getattr(exc, "store", None)
        suffix = "".join(
            f" [{label}: {value}]"
            for label, value in (("detail", detail), ("store", store))
            if value
        )
        logger.log(
            level,
            f"GuardError: {exc.message}{suffix}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "detail": detail,
                "store": store,
            },
        )
        exc.context.request_id = request_id_var.get()
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=exc.response_headers(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
