"""Request context for tenant-scoped booking operations.

The tenant and principal for a request are resolved once by upstream
middleware and then passed explicitly, as immutable values, to every
service call. A ContextVar mirrors the current RequestContext so that log
records can be enriched without threading it through the logger.

Usage:
    from schedula.core.context import TenantContext, Principal, request_context

    tenant = TenantContext.from_model(tenant_row)
    slots = await calculator.compute_slots(tenant, service_id, location_id, employee_id, day)

    with request_context(RequestContext(tenant=tenant, principal=principal)):
        ...  # logs carry tenant_id and request_id
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field

from schedula.config.plans import FeatureKey, PlanConfig, PlanId, get_plan
from schedula.config.settings import get_settings
from schedula.core.exceptions import (
    FeatureNotAvailableError,
    TenantContextRequiredError,
)
from schedula.db.models.tenant import TenantStatus

if TYPE_CHECKING:
    from schedula.db.models.tenant import Tenant


ANONYMOUS_IDENTITY = "unknown"


class TenantContext(BaseModel):
    """Resolved tenant attached to a request.

    Carries only what downstream components need: identity, plan, status
    and the tenant's settings and feature flags.
    """

    model_config = ConfigDict(frozen=True)

    tenant_id: UUID
    name: str
    subdomain: str
    custom_domain: str | None = None
    status: TenantStatus
    plan: PlanId
    trial_ends_at: datetime | None = None
    settings: dict[str, Any] = Field(default_factory=dict)
    features: dict[str, bool] = Field(default_factory=dict)

    @classmethod
    def from_model(cls, tenant: "Tenant") -> "TenantContext":
        """Build a context from a Tenant row."""
        return cls(
            tenant_id=tenant.tenant_id,
            name=tenant.name,
            subdomain=tenant.subdomain,
            custom_domain=tenant.custom_domain,
            status=TenantStatus(tenant.status),
            plan=PlanId(tenant.plan),
            trial_ends_at=tenant.trial_ends_at,
            settings=dict(tenant.settings or {}),
            features=dict(tenant.features or {}),
        )

    @property
    def plan_config(self) -> PlanConfig:
        return get_plan(self.plan)

    @property
    def reschedule_limit_hours(self) -> float:
        """Minimum hours before start that a reschedule is still allowed."""
        value = self.settings.get("rescheduleTimeLimitHours")
        if value is None:
            value = self.settings.get("rescheduleTimeLimit")
        if value is None:
            return get_settings().DEFAULT_RESCHEDULE_LIMIT_HOURS
        return float(value)

    @property
    def timezone(self) -> ZoneInfo:
        """The tenant's wall-clock timezone (falls back to the configured default)."""
        name = self.settings.get("timezone") or get_settings().DEFAULT_TIMEZONE
        try:
            return ZoneInfo(name)
        except ZoneInfoNotFoundError:
            return ZoneInfo(get_settings().DEFAULT_TIMEZONE)

    def has_feature(self, feature: FeatureKey | str) -> bool:
        """Check a feature flag on the tenant, falling back to the plan table."""
        key = feature.value if isinstance(feature, FeatureKey) else feature
        if key in self.features:
            return bool(self.features[key])
        try:
            return self.plan_config.has_feature(FeatureKey(key))
        except ValueError:
            return False

    def require_feature(self, feature: FeatureKey | str) -> None:
        """Assert that a feature is enabled for this tenant.

        Raises:
            FeatureNotAvailableError: If the feature is disabled
        """
        if not self.has_feature(feature):
            key = feature.value if isinstance(feature, FeatureKey) else feature
            raise FeatureNotAvailableError(key, self.plan.value)


class Principal(BaseModel):
    """Authenticated caller as supplied by upstream authentication."""

    model_config = ConfigDict(frozen=True)

    subject_id: str | None = None
    email: str | None = None
    name: str | None = None
    nickname: str | None = None
    permissions: frozenset[str] = frozenset()

    @property
    def is_anonymous(self) -> bool:
        return not self.subject_id

    @property
    def is_admin(self) -> bool:
        return "admin" in self.permissions

    @property
    def booked_by(self) -> str:
        return self.email or ANONYMOUS_IDENTITY

    @property
    def booked_by_name(self) -> str:
        if self.name:
            return self.name
        if self.nickname:
            return self.nickname
        return self.booked_by.split("@")[0]

    @property
    def user_id(self) -> str:
        return self.subject_id or ANONYMOUS_IDENTITY


ANONYMOUS = Principal()


class RequestContext(BaseModel):
    """Context for a single request."""

    model_config = ConfigDict(frozen=True)

    request_id: UUID = Field(default_factory=uuid4)
    tenant: TenantContext | None = None
    principal: Principal = ANONYMOUS
    initiated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def tenant_id(self) -> UUID | None:
        return self.tenant.tenant_id if self.tenant else None


def require_tenant(tenant: TenantContext | None) -> TenantContext:
    """Fail fast when a tenant-scoped operation has no tenant.

    Raises:
        TenantContextRequiredError: If tenant is None
    """
    if tenant is None:
        raise TenantContextRequiredError()
    return tenant


# =============================================================================
# Context Variable Management
# =============================================================================

_request_context: ContextVar[RequestContext | None] = ContextVar("request_context", default=None)


def get_current_context_or_none() -> RequestContext | None:
    """Get the current request context, or None if not set."""
    return _request_context.get()


def set_context(ctx: RequestContext) -> Token[RequestContext | None]:
    """Set the request context and return a token for restoration.

    This is a low-level API. Prefer using the request_context() context manager.
    """
    return _request_context.set(ctx)


def reset_context(token: Token[RequestContext | None]) -> None:
    """Reset the context to its previous value using a token."""
    _request_context.reset(token)


@contextmanager
def request_context(ctx: RequestContext):
    """Context manager for setting request context.

    Works for both sync and async code because contextvars are
    propagated to async tasks.
    """
    token = set_context(ctx)
    try:
        yield ctx
    finally:
        reset_context(token)
