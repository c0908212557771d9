"""Core services and utilities for Schedula."""

from .context import (
    ANONYMOUS,
    Principal,
    RequestContext,
    TenantContext,
    get_current_context_or_none,
    request_context,
    require_tenant,
    reset_context,
    set_context,
)
from .exceptions import (
    AnonymousBookingError,
    BookingConflictError,
    DeleteNotAllowedError,
    FeatureNotAvailableError,
    InvalidScheduleError,
    InvalidStatusTransitionError,
    NotFoundError,
    PolicyViolationError,
    QuotaExceededError,
    RescheduleWindowError,
    SchedulaError,
    ScheduleOverlapError,
    StoreUnavailableError,
    TenantAccessDeniedError,
    TenantContextRequiredError,
    TenantNotFoundError,
    TrialExpiredError,
)
from .tenant import TenantResolver

__all__ = [
    # Context
    "ANONYMOUS",
    "Principal",
    "RequestContext",
    "TenantContext",
    "get_current_context_or_none",
    "request_context",
    "require_tenant",
    "reset_context",
    "set_context",
    # Exceptions
    "AnonymousBookingError",
    "BookingConflictError",
    "DeleteNotAllowedError",
    "FeatureNotAvailableError",
    "InvalidScheduleError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "PolicyViolationError",
    "QuotaExceededError",
    "RescheduleWindowError",
    "SchedulaError",
    "ScheduleOverlapError",
    "StoreUnavailableError",
    "TenantAccessDeniedError",
    "TenantContextRequiredError",
    "TenantNotFoundError",
    "TrialExpiredError",
    # Tenant resolution
    "TenantResolver",
]
