"""Tenant lookups used by request routing."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.db.models.tenant import Tenant, TenantStatus


class TenantRepository:
    """Read access to tenants by their routing keys.

    Tenants are the root of the partitioning, so unlike the other
    repositories this one is not tenant scoped.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        """Get a tenant by ID.

        Args:
            tenant_id: The tenant's unique identifier

        Returns:
            Tenant if found, None otherwise
        """
        result = await self.db.execute(select(Tenant).where(Tenant.tenant_id == tenant_id))
        return result.scalar_one_or_none()

    async def get_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get a tenant by subdomain (case-insensitive)."""
        result = await self.db.execute(
            select(Tenant).where(Tenant.subdomain == subdomain.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_custom_domain(self, domain: str) -> Tenant | None:
        """Get a tenant whose custom domain equals the full hostname."""
        result = await self.db.execute(
            select(Tenant).where(Tenant.custom_domain == domain.strip().lower())
        )
        return result.scalar_one_or_none()

    async def list_by_status(self, status: TenantStatus) -> list[Tenant]:
        """List tenants in a status, oldest first."""
        result = await self.db.execute(
            select(Tenant).where(Tenant.status == status.value).order_by(Tenant.created_at)
        )
        return list(result.scalars().all())
