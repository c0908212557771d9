"""Configuration for Schedula."""

from .plans import PLANS, FeatureKey, PlanConfig, PlanId, QuotaLimits, QuotaResource, get_plan
from .settings import Settings, get_settings

__all__ = [
    "PLANS",
    "FeatureKey",
    "PlanConfig",
    "PlanId",
    "QuotaLimits",
    "QuotaResource",
    "Settings",
    "get_plan",
    "get_settings",
]
