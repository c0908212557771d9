"""Tenant resolution middleware."""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from schedula.core.context import ANONYMOUS, RequestContext, request_context
from schedula.core.error_handling import store_errors
from schedula.core.logging import log_request_end
from schedula.core.tenant import TenantResolver

logger = structlog.get_logger("schedula.api.requests")


# Paths that don't require a tenant
SKIP_TENANT_PATHS = {
    "/health",
    "/health/db",
    "/docs",
    "/redoc",
    "/openapi.json",
}


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Middleware that resolves the tenant for each request.

    Resolves the tenant from the query parameter, tenant header, host
    subdomain or custom domain, validates it and runs the rest of the
    request inside a RequestContext so log records carry the tenant.

    Requires:
        request.app.state.session_factory: Session factory for tenant lookups
        request.state.principal: Optional, set by upstream authentication

    Sets:
        request.state.request_id: The generated request ID
        request.state.tenant: TenantContext, or None on the operator host
        X-Request-ID response header: For client correlation
    """

    async def dispatch(
        self, request: Request, call_next: Callable
    ) -> Response:
        """Process request within the resolved tenant's context."""
        start_time = time.perf_counter()
        request_id = uuid4()
        request.state.request_id = request_id

        if self._should_skip_resolution(request.url.path):
            request.state.tenant = None
            response = await call_next(request)
            response.headers["X-Request-ID"] = str(request_id)
            return response

        settings = request.app.state.settings
        async with store_errors(), request.app.state.session_factory() as session:
            tenant = await TenantResolver(session, settings).resolve(
                request.headers.get("host"),
                request.query_params.get(settings.TENANT_QUERY_PARAM),
                header_tenant=request.headers.get(settings.TENANT_HEADER),
            )
        request.state.tenant = tenant

        ctx = RequestContext(
            request_id=request_id,
            tenant=tenant,
            principal=getattr(request.state, "principal", ANONYMOUS),
        )

        with request_context(ctx):
            response = await call_next(request)
            log_request_end(
                logger,
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - start_time) * 1000,
            )

        response.headers["X-Request-ID"] = str(request_id)
        return response

    def _should_skip_resolution(self, path: str) -> bool:
        """Check if path should skip tenant resolution."""
        return path in SKIP_TENANT_PATHS or path.startswith(("/docs", "/redoc"))
