"""Tenant resolution for incoming requests.

Maps an explicit identifier or the request hostname to a tenant and
validates that the tenant may be served.

Resolution order (first match wins):
    1. Explicit identifier from the query string, then the X-Tenant-ID
       header. UUID-shaped values are tried as tenant ids first, then as
       subdomains.
    2. Subdomain of the hostname.
    3. The full hostname as a custom domain.

The operator dashboard host (``admin.*``) bypasses resolution entirely.
"""

import ipaddress
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config.settings import Settings, get_settings
from schedula.core.context import TenantContext
from schedula.core.exceptions import (
    TenantAccessDeniedError,
    TenantNotFoundError,
    TrialExpiredError,
)
from schedula.db.models.tenant import Tenant, TenantStatus
from schedula.db.repositories.tenant import TenantRepository

logger = structlog.get_logger(__name__)


def strip_port(host: str) -> str:
    """Lowercase a Host header value and drop any port.

    Handles bracketed IPv6 literals such as ``[::1]:8000``.
    """
    host = host.strip().lower()
    if host.startswith("["):
        return host[1:].split("]", 1)[0]
    if host.count(":") == 1:
        return host.split(":", 1)[0]
    return host


def is_ip_literal(hostname: str) -> bool:
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


def host_label(hostname: str) -> str | None:
    """First label of a multi-label hostname, or None.

    ``<x>.localhost`` yields ``x``. IP literals and single-label hosts
    yield None.
    """
    if not hostname or is_ip_literal(hostname):
        return None
    parts = hostname.split(".")
    if len(parts) < 2 or not parts[0]:
        return None
    return parts[0]


def is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


class TenantResolver:
    """Resolve and validate the tenant for a request.

    Example:
        resolver = TenantResolver(db)
        tenant = await resolver.resolve("acme.example.com")
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        """Initialize resolver.

        Args:
            db: Async SQLAlchemy session used for tenant lookups
            settings: Settings to read reserved subdomains from (default: global)
        """
        self.tenants = TenantRepository(db)
        self.settings = settings or get_settings()

    def is_operator_host(self, host: str | None) -> bool:
        """Whether the host belongs to the operator dashboard."""
        label = host_label(strip_port(host or ""))
        return label is not None and label in self.settings.OPERATOR_SUBDOMAINS

    def subdomain_for(self, hostname: str) -> str | None:
        """Tenant subdomain encoded in a hostname, ignoring reserved labels."""
        label = host_label(hostname)
        if label is None:
            return None
        if label in self.settings.RESERVED_SUBDOMAINS or label in self.settings.OPERATOR_SUBDOMAINS:
            return None
        return label

    async def resolve(
        self,
        host: str | None,
        explicit_tenant: str | None = None,
        *,
        header_tenant: str | None = None,
        now: datetime | None = None,
    ) -> TenantContext | None:
        """Resolve the tenant for a request.

        Args:
            host: Host header value (port allowed)
            explicit_tenant: Tenant id or subdomain from the query string
            header_tenant: Tenant id or subdomain from the tenant header
            now: Reference time for the trial check (default: current UTC time)

        Returns:
            Validated TenantContext, or None for the operator dashboard host

        Raises:
            TenantNotFoundError: If no tenant matches
            TenantAccessDeniedError: If the tenant is not ACTIVE
            TrialExpiredError: If the tenant's trial has ended
        """
        if self.is_operator_host(host):
            logger.debug("tenant_resolution_bypassed", host=host)
            return None

        tenant = await self._find(host, explicit_tenant, header_tenant)
        self._validate(tenant, now or datetime.now(UTC))

        logger.debug("tenant_resolved", tenant_id=str(tenant.tenant_id), subdomain=tenant.subdomain)
        return TenantContext.from_model(tenant)

    async def _find(
        self,
        host: str | None,
        explicit_tenant: str | None,
        header_tenant: str | None,
    ) -> Tenant:
        if explicit_tenant:
            tenant = await self._lookup_identifier(explicit_tenant)
            if tenant is not None:
                return tenant

        if header_tenant:
            tenant = await self._lookup_identifier(header_tenant)
            if tenant is None:
                raise TenantNotFoundError(header_tenant)
            return tenant

        hostname = strip_port(host or "")
        subdomain = self.subdomain_for(hostname)
        if subdomain is not None:
            tenant = await self.tenants.get_by_subdomain(subdomain)
            if tenant is not None:
                return tenant

        if hostname:
            tenant = await self.tenants.get_by_custom_domain(hostname)
            if tenant is not None:
                return tenant

        raise TenantNotFoundError(explicit_tenant or hostname or "<no host>")

    async def _lookup_identifier(self, identifier: str) -> Tenant | None:
        identifier = identifier.strip()
        if is_uuid(identifier):
            tenant = await self.tenants.get_by_id(UUID(identifier))
            if tenant is not None:
                return tenant
        return await self.tenants.get_by_subdomain(identifier)

    @staticmethod
    def _validate(tenant: Tenant, now: datetime) -> None:
        if tenant.status != TenantStatus.ACTIVE.value:
            logger.info(
                "tenant_access_denied", tenant_id=str(tenant.tenant_id), status=tenant.status
            )
            raise TenantAccessDeniedError(tenant.tenant_id, tenant.status)

        if tenant.trial_ends_at is not None and tenant.trial_ends_at < now:
            logger.info(
                "tenant_trial_expired",
                tenant_id=str(tenant.tenant_id),
                trial_ends_at=tenant.trial_ends_at.isoformat(),
            )
            raise TrialExpiredError(tenant.tenant_id, tenant.trial_ends_at)
