"""Daily API request quota middleware."""

from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from schedula.config.plans import QuotaResource
from schedula.core.error_handling import store_errors
from schedula.quota import QuotaEnforcer

logger = structlog.get_logger(__name__)


class ApiUsageMiddleware(BaseHTTPMiddleware):
    """Middleware that meters API requests per tenant and day.

    Rejects the request when the tenant's daily allowance is used up,
    otherwise counts it. Requests without a tenant are not metered.

    Requires:
        request.state.tenant: Set by TenantResolutionMiddleware
        request.app.state.usage_counter: ApiUsageCounter
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Enforce and record API usage, then process request."""
        tenant = getattr(request.state, "tenant", None)
        if tenant is None:
            return await call_next(request)

        counter = request.app.state.usage_counter
        async with store_errors(), request.app.state.session_factory() as session:
            enforcer = QuotaEnforcer(session, counter)
            await enforcer.enforce_quota(tenant, QuotaResource.API_REQUESTS_PER_DAY)

        count = await counter.increment(tenant.tenant_id)
        logger.debug("api_request_counted", count=count)

        return await call_next(request)
