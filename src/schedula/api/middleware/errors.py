"""Error handling middleware for mapping exceptions to HTTP responses."""

from datetime import UTC, datetime
from typing import Callable
from uuid import UUID

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from schedula.api.schemas.errors import APIError, ErrorCode
from schedula.config.settings import get_settings
from schedula.core.exceptions import (
    AnonymousBookingError,
    BookingConflictError,
    DeleteNotAllowedError,
    FeatureNotAvailableError,
    NotFoundError,
    PolicyViolationError,
    QuotaExceededError,
    ScheduleOverlapError,
    StoreUnavailableError,
    TenantAccessDeniedError,
    TenantContextRequiredError,
    TenantNotFoundError,
    TrialExpiredError,
)

logger = structlog.get_logger(__name__)


# Exception to HTTP status/error code mapping
# Format: Exception -> (status_code, error_code)
# Subclasses must precede their bases.
EXCEPTION_MAP: dict[type[Exception], tuple[int, str]] = {
    TenantNotFoundError: (404, ErrorCode.TENANT_NOT_FOUND.value),
    TenantAccessDeniedError: (403, ErrorCode.TENANT_ACCESS_DENIED.value),
    TrialExpiredError: (402, ErrorCode.TRIAL_EXPIRED.value),
    TenantContextRequiredError: (400, ErrorCode.TENANT_REQUIRED.value),
    FeatureNotAvailableError: (403, ErrorCode.FEATURE_NOT_AVAILABLE.value),
    AnonymousBookingError: (401, ErrorCode.UNAUTHORIZED.value),
    NotFoundError: (404, ErrorCode.NOT_FOUND.value),
    BookingConflictError: (409, ErrorCode.BOOKING_CONFLICT.value),
    ScheduleOverlapError: (409, ErrorCode.SCHEDULE_OVERLAP.value),
    DeleteNotAllowedError: (403, ErrorCode.POLICY_VIOLATION.value),
    PolicyViolationError: (400, ErrorCode.POLICY_VIOLATION.value),
    QuotaExceededError: (429, ErrorCode.QUOTA_EXCEEDED.value),
    StoreUnavailableError: (503, ErrorCode.SERVICE_UNAVAILABLE.value),
    ValidationError: (422, ErrorCode.VALIDATION_ERROR.value),
}


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions and returns standardized error responses.

    Maps domain exceptions to appropriate HTTP status codes and formats
    all errors using the APIError schema.
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request and handle any exceptions."""
        try:
            return await call_next(request)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """Convert exception to JSON error response."""
        request_id = self._get_request_id(request)
        status_code, error_code = self._lookup(exc)
        message, details = self._describe(exc)

        if status_code >= 500:
            logger.error(
                "request_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                path=request.url.path,
                exc_info=status_code == 500,
            )

        error = APIError(
            error_code=error_code,
            message=message,
            details=details,
            request_id=request_id,
            timestamp=datetime.now(UTC),
        )

        return JSONResponse(
            status_code=status_code,
            content=error.model_dump(mode="json"),
            headers={"X-Request-ID": request_id},
        )

    def _get_request_id(self, request: Request) -> str:
        """Extract request ID from state or return placeholder."""
        if hasattr(request.state, "request_id"):
            rid = request.state.request_id
            return str(rid) if isinstance(rid, UUID) else rid
        return "unknown"

    @staticmethod
    def _lookup(exc: Exception) -> tuple[int, str]:
        for exc_type, mapping in EXCEPTION_MAP.items():
            if isinstance(exc, exc_type):
                return mapping
        return 500, ErrorCode.INTERNAL_ERROR.value

    def _describe(self, exc: Exception) -> tuple[str, dict | None]:
        """Map exception to (message, details)."""
        if isinstance(exc, TenantNotFoundError):
            return exc.args[0], {"lookup": str(exc.lookup)}

        if isinstance(exc, TenantAccessDeniedError):
            return exc.args[0], {"tenant_id": str(exc.tenant_id), "status": exc.status}

        if isinstance(exc, TrialExpiredError):
            return exc.args[0], {
                "tenant_id": str(exc.tenant_id),
                "trial_ends_at": exc.trial_ends_at.isoformat(),
            }

        if isinstance(exc, FeatureNotAvailableError):
            return str(exc), {"feature": exc.feature, "plan": exc.plan}

        if isinstance(exc, NotFoundError):
            details = {"resource": exc.resource}
            if exc.resource_id is not None:
                details["resource_id"] = str(exc.resource_id)
            return str(exc), details

        if isinstance(exc, BookingConflictError):
            return str(exc), {
                "employee_id": str(exc.employee_id),
                "conflicting_ids": [str(i) for i in exc.conflicting_ids],
            }

        if isinstance(exc, ScheduleOverlapError):
            return str(exc), {"existing_id": str(exc.existing_id)}

        if isinstance(exc, PolicyViolationError):
            return str(exc), {"rule": exc.rule}

        if isinstance(exc, QuotaExceededError):
            return exc.args[0], {
                "resource": exc.resource,
                "limit": exc.limit,
                "current": exc.current,
            }

        if isinstance(exc, StoreUnavailableError):
            return "Service temporarily unavailable", None

        if isinstance(exc, ValidationError):
            return "Request validation failed", {
                "errors": exc.errors(include_url=False, include_context=False)
            }

        if isinstance(exc, (TenantContextRequiredError, AnonymousBookingError)):
            return str(exc), None

        return (
            "Internal server error",
            {"type": type(exc).__name__} if get_settings().DEBUG else None,
        )
