"""Integration tests for ScheduleStore."""

from uuid import uuid4

import pytest

from schedula.booking import ScheduleStore
from schedula.core.context import TenantContext
from schedula.core.exceptions import (
    InvalidScheduleError,
    NotFoundError,
    PolicyViolationError,
    ScheduleOverlapError,
)
from schedula.db.models import BlockType, Employee, Tenant, TenantStatus, Weekday


@pytest.fixture
def store(db_session) -> ScheduleStore:
    return ScheduleStore(db_session)


@pytest.fixture
def add(store, tenant, employee, location):
    async def _add(start: str, end: str, **overrides):
        fields = {
            "employee_id": employee.employee_id,
            "location_id": location.location_id,
            "weekday": Weekday.MONDAY,
            "start_time": start,
            "end_time": end,
        }
        fields.update(overrides)
        return await store.add_schedule(tenant, **fields)

    return _add


@pytest.mark.asyncio
class TestAddSchedule:
    """Creating schedule blocks."""

    async def test_creates_working_hours_block(self, add, store, tenant, employee, location):
        schedule = await add("09:00", "17:00")

        assert schedule.weekday == "MONDAY"
        assert schedule.block_type == BlockType.WORKING_HOURS.value

        blocks = await store.find_schedule_for_weekday(
            tenant, employee.employee_id, location.location_id, Weekday.MONDAY
        )
        assert [b.schedule_id for b in blocks] == [schedule.schedule_id]

    async def test_overlapping_working_hours_rejected(self, add):
        existing = await add("09:00", "12:00")

        with pytest.raises(ScheduleOverlapError) as exc_info:
            await add("11:30", "14:00")

        assert exc_info.value.existing_id == existing.schedule_id

    async def test_adjacent_blocks_allowed(self, add):
        await add("09:00", "12:00")
        await add("12:00", "14:00")

    async def test_other_weekday_does_not_overlap(self, add):
        await add("09:00", "12:00")
        await add("09:00", "12:00", weekday=Weekday.TUESDAY)

    async def test_break_may_sit_inside_working_hours(self, add):
        await add("09:00", "17:00")
        brk = await add("12:00", "13:00", block_type=BlockType.BREAK)
        assert brk.block_type == BlockType.BREAK.value

    @pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("12:00", "09:00")])
    async def test_empty_or_inverted_window(self, add, start, end):
        with pytest.raises(InvalidScheduleError) as exc_info:
            await add(start, end)
        assert isinstance(exc_info.value, PolicyViolationError)
        assert exc_info.value.rule == "schedule_window"

    @pytest.mark.parametrize("value", ["9:00", "24:00", "09:60", "nine"])
    async def test_bad_time_format(self, add, value):
        with pytest.raises(ValueError, match="HH:MM"):
            await add(value, "18:00")

    async def test_unknown_location(self, add):
        with pytest.raises(NotFoundError) as exc_info:
            await add("09:00", "10:00", location_id=uuid4())
        assert exc_info.value.resource == "location"

    async def test_other_tenants_employee(self, db_session, add):
        other = Tenant(name="Other", subdomain="other", status=TenantStatus.ACTIVE.value)
        db_session.add(other)
        await db_session.commit()
        stranger = Employee(tenant_id=other.tenant_id, name="Stranger")
        db_session.add(stranger)
        await db_session.commit()

        with pytest.raises(NotFoundError) as exc_info:
            await add("09:00", "10:00", employee_id=stranger.employee_id)
        assert exc_info.value.resource == "employee"


@pytest.mark.asyncio
class TestListAndRemove:
    """Reading and deleting blocks."""

    async def test_list_filters(self, add, store, tenant, employee):
        await add("13:00", "17:00")
        await add("09:00", "12:00")
        await add("09:00", "12:00", weekday=Weekday.FRIDAY)

        monday = await store.list_schedules(
            tenant, employee_id=employee.employee_id, weekday=Weekday.MONDAY
        )
        assert [(b.start_time, b.end_time) for b in monday] == [
            ("09:00", "12:00"),
            ("13:00", "17:00"),
        ]
        assert len(await store.list_schedules(tenant)) == 3

    async def test_remove(self, add, store, tenant):
        schedule = await add("09:00", "12:00")

        await store.remove_schedule(tenant, schedule.schedule_id)

        assert await store.list_schedules(tenant) == []
        with pytest.raises(NotFoundError):
            await store.remove_schedule(tenant, schedule.schedule_id)

    async def test_other_tenant_cannot_see_blocks(self, db_session, add, store):
        await add("09:00", "12:00")
        other = Tenant(name="Other", subdomain="other", status=TenantStatus.ACTIVE.value)
        db_session.add(other)
        await db_session.commit()

        assert await store.list_schedules(TenantContext.from_model(other)) == []
