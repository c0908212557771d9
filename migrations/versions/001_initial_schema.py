"""Initial database schema

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _tenant_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["tenant_id"], ["tenants.tenant_id"], ondelete="CASCADE")


def upgrade() -> None:
    # Create tenants table
    op.create_table(
        "tenants",
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("subdomain", sa.String(63), nullable=False),
        sa.Column("custom_domain", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="TRIAL"),
        sa.Column("plan", sa.String(20), nullable=False, server_default="FREE"),
        sa.Column("trial_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("settings", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("features", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
        sa.UniqueConstraint("subdomain", name="uq_tenant_subdomain"),
        sa.UniqueConstraint("custom_domain", name="uq_tenant_custom_domain"),
    )
    op.create_index("idx_tenant_status", "tenants", ["status"])

    # Create locations, employees and services
    op.create_table(
        "locations",
        sa.Column("location_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=False, server_default=""),
        *_timestamps(),
        _tenant_fk(),
    )
    op.create_index("idx_location_tenant", "locations", ["tenant_id"])

    op.create_table(
        "employees",
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        *_timestamps(),
        _tenant_fk(),
    )
    op.create_index("idx_employee_tenant", "employees", ["tenant_id"])

    op.create_table(
        "services",
        sa.Column("service_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.CheckConstraint("duration_minutes > 0", name="ck_service_duration_positive"),
    )
    op.create_index("idx_service_tenant", "services", ["tenant_id"])

    op.create_table(
        "employee_locations",
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.employee_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.location_id"], ondelete="CASCADE"),
        _tenant_fk(),
    )
    op.create_index("idx_employee_location_tenant", "employee_locations", ["tenant_id"])

    # Create schedules table
    op.create_table(
        "schedules",
        sa.Column("schedule_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("weekday", sa.String(10), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("block_type", sa.String(20), nullable=False, server_default="WORKING_HOURS"),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.employee_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.location_id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_schedule_lookup",
        "schedules",
        ["tenant_id", "employee_id", "location_id", "weekday"],
    )

    # Create appointments table
    op.create_table(
        "appointments",
        sa.Column("appointment_id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("service_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("booked_by", sa.String(255), nullable=False),
        sa.Column("booked_by_name", sa.String(255), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("canceled_by", sa.String(255), nullable=True),
        sa.Column("cancel_reason", sa.String(1000), nullable=True),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="UNPAID"),
        sa.Column("payment_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("fulfillment_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _tenant_fk(),
        sa.ForeignKeyConstraint(["service_id"], ["services.service_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.employee_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["location_id"], ["locations.location_id"], ondelete="CASCADE"),
    )
    op.create_index(
        "idx_appointment_employee_start",
        "appointments",
        ["employee_id", "status", "start_time"],
    )
    op.create_index("idx_appointment_tenant_start", "appointments", ["tenant_id", "start_time"])
    op.create_index("idx_appointment_tenant_created", "appointments", ["tenant_id", "created_at"])
    op.create_index("idx_appointment_user", "appointments", ["tenant_id", "user_id"])


def downgrade() -> None:
    op.drop_table("appointments")
    op.drop_table("schedules")
    op.drop_table("employee_locations")
    op.drop_table("services")
    op.drop_table("employees")
    op.drop_table("locations")
    op.drop_table("tenants")
