"""API request and response schemas."""

from .booking import (
    AppointmentCreateRequest,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentUpdateRequest,
    AvailabilityResponse,
    TimeSlotResponse,
)
from .errors import APIError, ErrorCode
from .health import ComponentHealth, HealthDetailResponse, HealthResponse, HealthStatus
from .resources import (
    EmployeeCreateRequest,
    EmployeeResponse,
    LocationCreateRequest,
    LocationResponse,
    ServiceCreateRequest,
    ServiceResponse,
)

__all__ = [
    # Errors
    "APIError",
    "ErrorCode",
    # Health
    "ComponentHealth",
    "HealthDetailResponse",
    "HealthResponse",
    "HealthStatus",
    # Booking
    "AppointmentCreateRequest",
    "AppointmentListResponse",
    "AppointmentResponse",
    "AppointmentUpdateRequest",
    "AvailabilityResponse",
    "TimeSlotResponse",
    # Resources
    "EmployeeCreateRequest",
    "EmployeeResponse",
    "LocationCreateRequest",
    "LocationResponse",
    "ServiceCreateRequest",
    "ServiceResponse",
]
