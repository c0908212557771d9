"""Integration tests for tenant resolution against the database."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.config.settings import Settings
from schedula.core.exceptions import (
    TenantAccessDeniedError,
    TenantNotFoundError,
    TrialExpiredError,
)
from schedula.core.tenant import TenantResolver
from schedula.db.models import Tenant, TenantStatus


@pytest.fixture
async def other_tenant(db_session: AsyncSession) -> Tenant:
    tenant = Tenant(
        name="Beta Barbers",
        subdomain="beta",
        custom_domain="book.beta-barbers.com",
        status=TenantStatus.ACTIVE.value,
        plan="PRO",
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
def resolver(db_session: AsyncSession, test_settings: Settings) -> TenantResolver:
    return TenantResolver(db_session, test_settings)


@pytest.mark.asyncio
class TestResolutionOrder:
    """Which identifier wins."""

    async def test_subdomain(self, resolver: TenantResolver, tenant_row: Tenant):
        tenant = await resolver.resolve("acme.example.com")
        assert tenant.tenant_id == tenant_row.tenant_id

    async def test_subdomain_with_port(self, resolver: TenantResolver, tenant_row: Tenant):
        tenant = await resolver.resolve("acme.localhost:3000")
        assert tenant.subdomain == "acme"

    async def test_custom_domain(self, resolver: TenantResolver, other_tenant: Tenant):
        tenant = await resolver.resolve("book.beta-barbers.com")
        assert tenant.tenant_id == other_tenant.tenant_id

    async def test_explicit_id_beats_host(
        self, resolver: TenantResolver, tenant_row: Tenant, other_tenant: Tenant
    ):
        tenant = await resolver.resolve("acme.example.com", str(other_tenant.tenant_id))
        assert tenant.tenant_id == other_tenant.tenant_id

    async def test_explicit_subdomain(
        self, resolver: TenantResolver, tenant_row: Tenant, other_tenant: Tenant
    ):
        tenant = await resolver.resolve("localhost", "beta")
        assert tenant.tenant_id == other_tenant.tenant_id

    async def test_unknown_explicit_falls_through_to_host(
        self, resolver: TenantResolver, tenant_row: Tenant
    ):
        tenant = await resolver.resolve("acme.example.com", "nobody")
        assert tenant.tenant_id == tenant_row.tenant_id

    async def test_header_id(self, resolver: TenantResolver, other_tenant: Tenant):
        tenant = await resolver.resolve("localhost", header_tenant=str(other_tenant.tenant_id))
        assert tenant.tenant_id == other_tenant.tenant_id

    async def test_unknown_header_is_not_found(
        self, resolver: TenantResolver, tenant_row: Tenant
    ):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve("acme.example.com", header_tenant="nobody")

    async def test_operator_host_bypasses(self, resolver: TenantResolver, tenant_row: Tenant):
        assert await resolver.resolve("admin.example.com") is None

    async def test_www_is_not_a_tenant(self, resolver: TenantResolver, tenant_row: Tenant):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve("www.example.com")

    async def test_no_match(self, resolver: TenantResolver, tenant_row: Tenant):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve("unknown.example.com")

    async def test_no_host(self, resolver: TenantResolver):
        with pytest.raises(TenantNotFoundError):
            await resolver.resolve(None)


@pytest.mark.asyncio
class TestTenantValidation:
    """Status and trial checks after lookup."""

    @pytest.mark.parametrize("status", [TenantStatus.SUSPENDED, TenantStatus.EXPIRED, TenantStatus.TRIAL])
    async def test_non_active_is_denied(
        self, resolver: TenantResolver, db_session: AsyncSession, tenant_row: Tenant, status
    ):
        tenant_row.status = status.value
        await db_session.commit()

        with pytest.raises(TenantAccessDeniedError) as exc_info:
            await resolver.resolve("acme.example.com")
        assert exc_info.value.status == status.value

    async def test_trial_expired(
        self, resolver: TenantResolver, db_session: AsyncSession, tenant_row: Tenant
    ):
        now = datetime(2026, 3, 1, tzinfo=UTC)
        tenant_row.trial_ends_at = now - timedelta(days=1)
        await db_session.commit()

        with pytest.raises(TrialExpiredError):
            await resolver.resolve("acme.example.com", now=now)

    async def test_trial_still_running(
        self, resolver: TenantResolver, db_session: AsyncSession, tenant_row: Tenant
    ):
        now = datetime(2026, 3, 1, tzinfo=UTC)
        tenant_row.trial_ends_at = now + timedelta(days=1)
        await db_session.commit()

        tenant = await resolver.resolve("acme.example.com", now=now)
        assert tenant.trial_ends_at == now + timedelta(days=1)
