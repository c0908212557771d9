"""Past-due appointment sweep.

Appointments left SCHEDULED well after their start time are cancelled
automatically. Only appointments inside a bounded look-back window are
touched, and updates go out in small batches.

Run as a worker with ``schedula-past-due`` or
``python -m schedula.booking.maintenance``; pass ``--once`` for a single
sweep from an external scheduler.
"""

import argparse
import asyncio
import sys
from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schedula.config.settings import PastDueConfig, get_settings
from schedula.core.error_handling import store_errors
from schedula.core.exceptions import StoreUnavailableError
from schedula.core.logging import setup_logging
from schedula.db.config import close_db, get_session_factory
from schedula.db.models.tenant import TenantStatus
from schedula.db.repositories import AppointmentRepository, TenantRepository

logger = structlog.get_logger(__name__)

PAST_DUE_CANCEL_REASON = "Automatically cancelled - past due"
SYSTEM_ACTOR = "system"


class PastAppointmentProcessor:
    """Cancel SCHEDULED appointments that were never fulfilled.

    Example:
        processor = PastAppointmentProcessor(db)
        cancelled = await processor.process_all()
    """

    def __init__(self, db: AsyncSession, config: PastDueConfig | None = None):
        """Initialize the processor.

        Args:
            db: Async SQLAlchemy session
            config: Grace period, look-back window and batching (default: settings)
        """
        self.db = db
        self.config = config or get_settings().past_due
        self.appointments = AppointmentRepository(db)
        self.tenants = TenantRepository(db)

    async def process_all(self, now: datetime | None = None) -> dict[UUID, int]:
        """Sweep every ACTIVE tenant.

        Returns:
            Number of appointments cancelled per tenant (tenants with none omitted)
        """
        now = now or datetime.now(UTC)
        async with store_errors():
            tenants = await self.tenants.list_by_status(TenantStatus.ACTIVE)

        results: dict[UUID, int] = {}
        for tenant in tenants:
            cancelled = await self.process_tenant(tenant.tenant_id, now=now)
            if cancelled:
                results[tenant.tenant_id] = cancelled

        logger.info(
            "past_due_sweep_completed",
            tenants=len(tenants),
            cancelled=sum(results.values()),
        )
        return results

    async def process_tenant(self, tenant_id: UUID, now: datetime | None = None) -> int:
        """Cancel one tenant's past-due appointments.

        Args:
            tenant_id: Tenant to sweep
            now: Reference time (default: current UTC time)

        Returns:
            Number of appointments cancelled
        """
        now = now or datetime.now(UTC)
        started_before = now - timedelta(hours=self.config.grace_hours)
        started_after = now - timedelta(days=self.config.lookback_days)

        async with store_errors():
            ids = await self.appointments.list_past_due_ids(
                tenant_id,
                started_before=started_before,
                started_after=started_after,
                limit=self.config.max_per_run,
            )
            if not ids:
                return 0

            logger.info("past_due_found", tenant_id=str(tenant_id), count=len(ids))

            cancelled = 0
            for offset in range(0, len(ids), self.config.batch_size):
                batch = ids[offset : offset + self.config.batch_size]
                cancelled += await self.appointments.cancel_many(
                    tenant_id,
                    batch,
                    reason=PAST_DUE_CANCEL_REASON,
                    canceled_by=SYSTEM_ACTOR,
                )
                await self.db.commit()

        logger.info("past_due_cancelled", tenant_id=str(tenant_id), cancelled=cancelled)
        return cancelled


async def run_past_due_sweep(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    config: PastDueConfig | None = None,
) -> dict[UUID, int]:
    """Run one sweep on its own session."""
    session_factory = session_factory or get_session_factory()
    async with session_factory() as session:
        return await PastAppointmentProcessor(session, config).process_all()


async def run_past_due_worker(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    config: PastDueConfig | None = None,
    *,
    once: bool = False,
) -> None:
    """Sweep repeatedly, pausing interval_seconds between runs.

    A run that fails because the store is unavailable is logged and the
    worker carries on with the next one.
    """
    config = config or get_settings().past_due
    logger.info("past_due_worker_starting", interval_seconds=config.interval_seconds, once=once)
    while True:
        try:
            await run_past_due_sweep(session_factory, config)
        except StoreUnavailableError as e:
            if once:
                raise
            logger.warning("past_due_sweep_failed", error=str(e))
        if once:
            return
        await asyncio.sleep(config.interval_seconds)


async def _run(once: bool) -> None:
    try:
        await run_past_due_worker(once=once)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point for the past-due sweep.

    Usage:
        schedula-past-due --once
        python -m schedula.booking.maintenance
    """
    parser = argparse.ArgumentParser(description="Cancel past-due appointments")
    parser.add_argument("--once", action="store_true", help="run a single sweep and exit")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        asyncio.run(_run(args.once))
    except KeyboardInterrupt:
        logger.info("past_due_worker_stopped")
    except StoreUnavailableError:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
