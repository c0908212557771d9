"""Subscription plan table.

Each plan maps to a frozen PlanConfig holding its quotas and feature flags.
The table is built once at import and consumed read-only by the quota
enforcer and feature gate.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict


class PlanId(str, Enum):
    """Subscription plans a tenant can be on."""

    FREE = "FREE"
    BASIC = "BASIC"
    PRO = "PRO"


class QuotaResource(str, Enum):
    """Countable tenant resources with plan limits."""

    LOCATIONS = "locations"
    EMPLOYEES = "employees"
    SERVICES = "services"
    APPOINTMENTS_PER_MONTH = "appointments_per_month"
    API_REQUESTS_PER_DAY = "api_requests_per_day"


class FeatureKey(str, Enum):
    """Plan-gated features."""

    CUSTOM_BRANDING = "customBranding"
    API_ACCESS = "apiAccess"
    WEBHOOKS = "webhooks"
    MULTIPLE_LOCATIONS = "multipleLocations"
    ANALYTICS = "analytics"
    PAYMENT_PROCESSING = "paymentProcessing"


class QuotaLimits(BaseModel):
    """Numeric ceilings per resource.

    None means unrestricted. Zero and negative values are treated the same
    way by the enforcer.
    """

    model_config = ConfigDict(frozen=True)

    locations: int | None = None
    employees: int | None = None
    services: int | None = None
    appointments_per_month: int | None = None
    api_requests_per_day: int | None = None

    def limit_for(self, resource: QuotaResource) -> int | None:
        """Get the effective limit for a resource, None when unrestricted."""
        limit = getattr(self, resource.value)
        if limit is None or limit <= 0:
            return None
        return limit


class PlanConfig(BaseModel):
    """Quotas and features for one plan."""

    model_config = ConfigDict(frozen=True)

    plan_id: PlanId
    name: str
    price: Decimal
    quotas: QuotaLimits
    features: dict[FeatureKey, bool]
    trial_days: int = 14

    def has_feature(self, feature: FeatureKey) -> bool:
        return self.features.get(feature, False)


PLANS: dict[PlanId, PlanConfig] = {
    PlanId.FREE: PlanConfig(
        plan_id=PlanId.FREE,
        name="Free",
        price=Decimal("0"),
        quotas=QuotaLimits(
            locations=1,
            employees=5,
            services=10,
            appointments_per_month=100,
            api_requests_per_day=None,
        ),
        features={
            FeatureKey.CUSTOM_BRANDING: False,
            FeatureKey.API_ACCESS: False,
            FeatureKey.WEBHOOKS: False,
            FeatureKey.MULTIPLE_LOCATIONS: False,
            FeatureKey.ANALYTICS: False,
            FeatureKey.PAYMENT_PROCESSING: False,
        },
    ),
    PlanId.BASIC: PlanConfig(
        plan_id=PlanId.BASIC,
        name="Basic",
        price=Decimal("29"),
        quotas=QuotaLimits(
            locations=3,
            employees=15,
            services=25,
            appointments_per_month=500,
            api_requests_per_day=1000,
        ),
        features={
            FeatureKey.CUSTOM_BRANDING: True,
            FeatureKey.API_ACCESS: False,
            FeatureKey.WEBHOOKS: False,
            FeatureKey.MULTIPLE_LOCATIONS: True,
            FeatureKey.ANALYTICS: False,
            FeatureKey.PAYMENT_PROCESSING: True,
        },
    ),
    PlanId.PRO: PlanConfig(
        plan_id=PlanId.PRO,
        name="Professional",
        price=Decimal("99"),
        quotas=QuotaLimits(api_requests_per_day=10000),
        features={
            FeatureKey.CUSTOM_BRANDING: True,
            FeatureKey.API_ACCESS: True,
            FeatureKey.WEBHOOKS: True,
            FeatureKey.MULTIPLE_LOCATIONS: True,
            FeatureKey.ANALYTICS: True,
            FeatureKey.PAYMENT_PROCESSING: True,
        },
    ),
}


def get_plan(plan: PlanId | str) -> PlanConfig:
    """Look up a plan by id.

    Raises:
        ValueError: If the plan id is unknown
    """
    return PLANS[PlanId(plan)]
