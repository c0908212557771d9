"""Base repository with tenant-scoped CRUD operations.

Every query issued through a repository filters on tenant_id, so a record
belonging to another tenant is indistinguishable from a missing one.

Usage:
    from schedula.db.repositories.base import TenantScopedRepository

    class LocationRepository(TenantScopedRepository[Location]):
        pass

    repo = LocationRepository(db_session)
    location = await repo.get(tenant_id, location_id)
    total = await repo.count(tenant_id)
"""

from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schedula.core.exceptions import NotFoundError
from schedula.db.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class TenantScopedRepository(Generic[ModelType]):
    """Generic repository for models carrying a tenant_id column.

    Type Parameters:
        ModelType: The SQLAlchemy model class

    Attributes:
        model: The model class
        resource_name: Name used in NotFoundError messages
        db: The database session
    """

    model: type[ModelType]
    resource_name: str = "record"

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db

    def __init_subclass__(cls, **kwargs):
        """Extract model type from generic parameter."""
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", []):
            args = getattr(base, "__args__", None)
            if args and len(args) >= 1:
                first_arg = args[0]
                if isinstance(first_arg, type) and issubclass(first_arg, Base):
                    cls.model = first_arg
                    break

    def scoped(self, tenant_id: UUID) -> Select:
        """Select statement restricted to one tenant."""
        return select(self.model).where(self.model.tenant_id == tenant_id)

    async def get(self, tenant_id: UUID, pk: UUID) -> ModelType | None:
        """Get a single record by primary key within a tenant.

        Args:
            tenant_id: Owning tenant
            pk: Primary key value

        Returns:
            Model instance or None if not found in this tenant
        """
        stmt = self.scoped(tenant_id).where(self._get_pk_column() == pk)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_raise(self, tenant_id: UUID, pk: UUID) -> ModelType:
        """Get a single record by primary key or raise.

        Raises:
            NotFoundError: If record not found in this tenant
        """
        obj = await self.get(tenant_id, pk)
        if obj is None:
            raise NotFoundError(self.resource_name, pk)
        return obj

    async def list_all(self, tenant_id: UUID, limit: int = 100, offset: int = 0) -> list[ModelType]:
        """List a tenant's records, oldest first."""
        stmt = (
            self.scoped(tenant_id)
            .order_by(self.model.created_at, self._get_pk_column())
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, tenant_id: UUID, *criteria: ColumnElement[bool]) -> int:
        """Count a tenant's records, optionally narrowed by extra criteria."""
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self.model.tenant_id == tenant_id, *criteria)
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def create(self, obj: ModelType, *, commit: bool = True) -> ModelType:
        """Create a new record.

        Args:
            obj: Model instance to create
            commit: Whether to commit the transaction

        Returns:
            Created model instance
        """
        self.db.add(obj)
        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()
        return obj

    async def update(
        self, obj: ModelType, updates: dict[str, Any], *, commit: bool = True
    ) -> ModelType:
        """Update a record with given values."""
        for field, value in updates.items():
            if hasattr(obj, field):
                setattr(obj, field, value)

        if commit:
            await self.db.commit()
            await self.db.refresh(obj)
        else:
            await self.db.flush()

        return obj

    async def delete(self, obj: ModelType, *, commit: bool = True) -> None:
        """Delete a record."""
        await self.db.delete(obj)
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()

    def _get_pk_column(self):
        """Get the primary key column for this model.

        Raises:
            ValueError: If no primary key found
        """
        pk_cols = self.model.__mapper__.primary_key
        if not pk_cols:
            raise ValueError(f"No primary key found for {self.model.__name__}")
        return pk_cols[0]
