"""Core exceptions for tenant resolution, booking and quotas."""

from datetime import datetime
from uuid import UUID


class SchedulaError(Exception):
    """Base exception for all Schedula errors."""

    pass


# =============================================================================
# Tenant resolution
# =============================================================================


class TenantNotFoundError(SchedulaError):
    """Raised when no tenant matches the request.

    Attributes:
        lookup: The identifier, hostname or domain that was tried
    """

    def __init__(self, lookup: UUID | str):
        super().__init__(f"Tenant not found: {lookup}")
        self.lookup = lookup

    def __str__(self) -> str:
        return f"TenantNotFoundError: {self.args[0]}"


class TenantAccessDeniedError(SchedulaError):
    """Raised when a tenant exists but its status does not allow access.

    Attributes:
        tenant_id: The identifier of the tenant
        status: The tenant's current status (e.g., "SUSPENDED")
    """

    def __init__(self, tenant_id: UUID | str, status: str):
        super().__init__(f"Tenant access denied: {tenant_id} is {status}")
        self.tenant_id = tenant_id
        self.status = status

    def __str__(self) -> str:
        return f"TenantAccessDeniedError: {self.args[0]}"


class TrialExpiredError(SchedulaError):
    """Raised when an active tenant's trial period has ended.

    Attributes:
        tenant_id: The identifier of the tenant
        trial_ends_at: When the trial ended
    """

    def __init__(self, tenant_id: UUID | str, trial_ends_at: datetime):
        super().__init__("Trial period has expired")
        self.tenant_id = tenant_id
        self.trial_ends_at = trial_ends_at

    def __str__(self) -> str:
        return f"TrialExpiredError: {self.args[0]} (tenant={self.tenant_id}, ended={self.trial_ends_at})"


class TenantContextRequiredError(SchedulaError):
    """Raised when a tenant-scoped operation runs without a resolved tenant."""

    def __init__(self, message: str = "Tenant context required"):
        super().__init__(message)


class FeatureNotAvailableError(SchedulaError):
    """Raised when the tenant's plan does not include a feature.

    Attributes:
        feature: The feature that was requested
        plan: The tenant's plan
    """

    def __init__(self, feature: str, plan: str):
        super().__init__(f"Feature not available: {feature}")
        self.feature = feature
        self.plan = plan


# =============================================================================
# Lookups
# =============================================================================


class NotFoundError(SchedulaError):
    """Raised when a tenant-scoped record does not exist.

    Attributes:
        resource: The kind of record (e.g., "service", "schedule")
        resource_id: The identifier that was looked up, if any
    """

    def __init__(self, resource: str, resource_id: UUID | str | None = None, message: str | None = None):
        if message is None:
            message = f"{resource.capitalize()} not found"
            if resource_id is not None:
                message = f"{message}: {resource_id}"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


# =============================================================================
# Booking
# =============================================================================


class BookingConflictError(SchedulaError):
    """Raised when a booking overlaps an existing scheduled appointment.

    Attributes:
        employee_id: The employee whose calendar has the conflict
        conflicting_ids: Identifiers of the overlapping appointments
    """

    def __init__(
        self,
        employee_id: UUID,
        conflicting_ids: list[UUID] | None = None,
        message: str = "Time slot is already booked",
    ):
        super().__init__(message)
        self.employee_id = employee_id
        self.conflicting_ids = conflicting_ids or []


class AnonymousBookingError(SchedulaError):
    """Raised when an anonymous principal books while that is disabled."""

    def __init__(self, message: str = "Bookings require an authenticated customer"):
        super().__init__(message)


class PolicyViolationError(SchedulaError):
    """Raised when an operation breaks a booking rule.

    Attributes:
        rule: Machine-readable name of the rule that was violated
    """

    rule: str = "policy"

    def __init__(self, message: str):
        super().__init__(message)


class RescheduleWindowError(PolicyViolationError):
    """Raised when a reschedule falls inside the tenant's cut-off window.

    Attributes:
        limit_hours: The tenant's reschedule limit in hours
        hours_until_start: Hours remaining before the appointment
    """

    rule = "reschedule_window"

    def __init__(self, limit_hours: float, hours_until_start: float):
        super().__init__(
            f"Cannot reschedule appointments less than {limit_hours:g} hours "
            "before the appointment time"
        )
        self.limit_hours = limit_hours
        self.hours_until_start = hours_until_start


class DeleteNotAllowedError(PolicyViolationError):
    """Raised when deleting an appointment that is still upcoming and active."""

    rule = "delete_active_appointment"

    def __init__(self, appointment_id: UUID):
        super().__init__(
            "Cannot delete appointment. It must be either cancelled "
            "or past its scheduled date."
        )
        self.appointment_id = appointment_id


class InvalidStatusTransitionError(PolicyViolationError):
    """Raised when an appointment status change is not allowed.

    Attributes:
        current: The appointment's current status
        requested: The status that was requested
    """

    rule = "status_transition"

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change appointment status from {current} to {requested}")
        self.current = current
        self.requested = requested


class InvalidScheduleError(PolicyViolationError):
    """Raised when a schedule block's window is empty or inverted."""

    rule = "schedule_window"

    def __init__(self, start_time: str, end_time: str):
        super().__init__("Start time must be before end time")
        self.start_time = start_time
        self.end_time = end_time


class ScheduleOverlapError(SchedulaError):
    """Raised when a working-hours block overlaps an existing one.

    Attributes:
        existing_id: The schedule block that overlaps
    """

    def __init__(self, existing_id: UUID):
        super().__init__("Schedule overlaps with existing schedule")
        self.existing_id = existing_id


# =============================================================================
# Quotas
# =============================================================================


class QuotaExceededError(SchedulaError):
    """Raised when a tenant has used up a plan quota.

    Attributes:
        resource: The resource whose quota is exhausted
        limit: The plan limit
        current: The tenant's current usage
    """

    def __init__(self, resource: str, limit: int, current: int):
        super().__init__(f"Quota exceeded for {resource}")
        self.resource = resource
        self.limit = limit
        self.current = current

    def __str__(self) -> str:
        return f"QuotaExceededError: {self.args[0]} (limit={self.limit}, current={self.current})"


# =============================================================================
# Store
# =============================================================================


class StoreUnavailableError(SchedulaError):
    """Raised for transient data store failures.

    This is the only error kind that is retried locally.
    """

    def __init__(self, message: str = "Data store unavailable"):
        super().__init__(message)
