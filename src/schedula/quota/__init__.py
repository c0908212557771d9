"""Plan quota enforcement."""

from .enforcer import QuotaCheck, QuotaEnforcer

__all__ = ["QuotaCheck", "QuotaEnforcer"]
