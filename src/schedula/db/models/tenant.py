"""Tenant model for multi-tenancy support."""

import re
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base, PortableJSON, PortableUUID, TimestampMixin, UTCDateTime

SUBDOMAIN_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")


class TenantStatus(str, Enum):
    """Lifecycle status of a tenant account."""

    ACTIVE = "ACTIVE"
    TRIAL = "TRIAL"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"


class Tenant(TimestampMixin, Base):
    """A business account using the platform.

    Every other record is partitioned by tenant_id. The subdomain and the
    optional custom domain are both globally unique routing keys.
    """

    __tablename__ = "tenants"

    tenant_id: Mapped[UUID] = mapped_column(PortableUUID(), primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subdomain: Mapped[str] = mapped_column(String(63), nullable=False, unique=True)
    custom_domain: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    # Subscription
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TenantStatus.TRIAL.value
    )
    plan: Mapped[str] = mapped_column(String(20), nullable=False, default="FREE")
    trial_ends_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Configuration
    settings: Mapped[dict[str, Any]] = mapped_column(PortableJSON(), nullable=False, default=dict)
    features: Mapped[dict[str, bool]] = mapped_column(PortableJSON(), nullable=False, default=dict)

    __table_args__ = (Index("idx_tenant_status", "status"),)

    @validates("subdomain")
    def _validate_subdomain(self, key: str, value: str) -> str:
        value = value.strip().lower()
        if not SUBDOMAIN_PATTERN.match(value):
            raise ValueError(f"Invalid subdomain: {value!r}")
        return value

    @validates("custom_domain")
    def _validate_custom_domain(self, key: str, value: str | None) -> str | None:
        return value.strip().lower() if value else None

    def __repr__(self) -> str:
        return f"<Tenant(id={self.tenant_id}, subdomain={self.subdomain})>"
