"""API middleware components."""

from .errors import ErrorHandlingMiddleware
from .tenant import TenantResolutionMiddleware
from .usage import ApiUsageMiddleware

__all__ = [
    "ApiUsageMiddleware",
    "ErrorHandlingMiddleware",
    "TenantResolutionMiddleware",
]
