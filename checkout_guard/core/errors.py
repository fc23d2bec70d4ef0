"""Error Hierarchy — typed, categorized exceptions for every checkout-boundary failure.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation-category errors (rate limit, token, cart) are 4xx and safe to return
    - Infrastructure errors (store, database, payment) are 5xx with a generic message
    - No rejected origin, secret, or internal diagnostic ever reaches to_response()

Design Decisions:
    - Single hierarchy with GuardError base: FastAPI global handler catches all (ADR: uniform error shape)
    - TokenInvalidError keeps its reason for logs but always renders one generic message
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from checkout_guard.core.domain_types import CartRejection, TokenRejection


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RATE_LIMIT = "rate_limit"
    FORBIDDEN = "forbidden"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_seconds: int | None = None


class GuardError(Exception):
    """Base exception for all checkout-boundary errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        body = {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "timestamp": self.context.timestamp.isoformat(),
        }
        if self.context.request_id:
            body["request_id"] = self.context.request_id
        if self.context.retry_after_seconds is not None:
            body["retry_after"] = self.context.retry_after_seconds
        return {"error": body}

    def response_headers(self) -> dict[str, str]:
        """Extra HTTP headers for the error response."""
        return {}


# ─── Validation Errors (400-level) ──────────────────────────────

class RateLimitedError(GuardError):
    """Identifier exhausted its fixed window; retry after the window resets."""
    def __init__(
        self,
        headers: dict[str, str],
        retry_after_seconds: int,
        message: str = "Too many requests. Please wait and try again.",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_seconds = retry_after_seconds
        super().__init__(
            message, "RATE_LIMITED", ErrorCategory.RATE_LIMIT,
            ErrorSeverity.WARNING, ctx, 429,
        )
        self.headers = headers

    def response_headers(self) -> dict[str, str]:
        return dict(self.headers)


class OriginRejectedError(GuardError):
    """State-changing request from an origin outside the allowlist."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid request origin", "INVALID_ORIGIN", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )


class TokenInvalidError(GuardError):
    """Checkout token missing, malformed, expired, future-dated or forged."""
    def __init__(self, reason: TokenRejection, context: ErrorContext | None = None):
        super().__init__(
            "Checkout session is invalid or has expired. Please refresh the page.",
            "INVALID_CHECKOUT_TOKEN", ErrorCategory.FORBIDDEN,
            ErrorSeverity.WARNING, context, 403,
        )
        self.reason = reason


class CartRejectedError(GuardError):
    """Cart failed authoritative re-validation; the whole cart is refused."""
    def __init__(
        self,
        reason: CartRejection,
        message: str,
        context: ErrorContext | None = None,
    ):
        status = 404 if reason is CartRejection.DISCOUNT_NOT_FOUND else 400
        super().__init__(
            message, reason.value, ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, status,
        )
        self.reason = reason


class RequestValidationFailed(GuardError):
    """Request body failed schema validation."""
    def __init__(self, errors: list[dict], context: ErrorContext | None = None):
        super().__init__(
            "Invalid request data", "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.errors = errors

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["details"] = self.errors
        return response


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StoreUnreachableError(GuardError):
    """Catalog, discount or counter store did not answer in time."""
    def __init__(self, store: str, context: ErrorContext | None = None):
        super().__init__(
            "Service temporarily unavailable. Please try again.",
            "STORE_UNREACHABLE", ErrorCategory.TIMEOUT,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.store = store


class DatabaseError(GuardError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class PaymentProviderError(GuardError):
    """Payment provider refused or failed to create a payment session."""
    def __init__(self, detail: str, context: ErrorContext | None = None):
        super().__init__(
            "Failed to initiate payment. Please try again.",
            "PAYMENT_PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.detail = detail
