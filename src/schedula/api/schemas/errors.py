"""Error response schemas for API."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Authentication
    UNAUTHORIZED = "unauthorized"

    # Tenant errors
    TENANT_NOT_FOUND = "tenant_not_found"
    TENANT_ACCESS_DENIED = "tenant_access_denied"
    TRIAL_EXPIRED = "trial_expired"
    TENANT_REQUIRED = "tenant_required"
    FEATURE_NOT_AVAILABLE = "feature_not_available"

    # Request errors
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"

    # Booking errors
    BOOKING_CONFLICT = "booking_conflict"
    SCHEDULE_OVERLAP = "schedule_overlap"
    POLICY_VIOLATION = "policy_violation"

    # Resource errors
    QUOTA_EXCEEDED = "quota_exceeded"

    # System errors
    INTERNAL_ERROR = "internal_error"
    SERVICE_UNAVAILABLE = "service_unavailable"


class APIError(BaseModel):
    """Standardized API error response format.

    All API errors return this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )
    request_id: str = Field(..., description="Request ID for tracing")
    timestamp: datetime = Field(..., description="When the error occurred")

    model_config = {"json_schema_extra": {"example": {
        "error_code": "booking_conflict",
        "message": "Time slot is already booked",
        "details": {"employee_id": "5f0c7d2e-8a61-4c43-9a57-0e4f1f0d8b6a"},
        "request_id": "9d1f3c52-52f4-4b8e-b7c4-3f5d0a2e6c11",
        "timestamp": "2026-01-30T12:00:00Z",
    }}}
