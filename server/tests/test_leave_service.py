"""
Tests for the leave service against a real (SQLite) session.
"""
import pytest
import uuid
from datetime import date, datetime, timezone
from sqlalchemy import Delete, Update, select, update

from leave_api.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from leave_api.models.leave import Leave, LeaveStatus, LeaveType
from leave_api.models.user import UserRole
from leave_api.schemas.common import ListFilters
from leave_api.schemas.leave import LeaveCreate, LeaveStatusUpdate
from leave_api.services.leave_service import (
    create_leave,
    decide_leave,
    delete_leave,
    get_leave,
    get_leave_statistics,
    list_leaves,
    zero_fill_months,
)

from conftest import NOW, FrozenClock, create_leave as insert_leave, create_user, days


def leave_request(start, end, leave_type=LeaveType.ANNUAL, reason="Family trip plan") -> LeaveCreate:
    return LeaveCreate(leave_type=leave_type, start_date=start, end_date=end, reason=reason)


# --- create ---

@pytest.mark.asyncio
async def test_create_leave_is_pending_with_inclusive_days(db, employee, clock):
    leave = await create_leave(db, employee, leave_request(days(1), days(3)), clock)

    assert leave.status == LeaveStatus.PENDING
    assert leave.total_days == 3
    assert leave.user_id == employee.id
    assert leave.user.email == "john@example.com"
    assert leave.approver is None
    assert leave.approved_at is None


@pytest.mark.asyncio
async def test_create_leave_rejects_overlap(db, employee, clock):
    await create_leave(db, employee, leave_request(days(1), days(3)), clock)

    with pytest.raises(ValidationError) as exc_info:
        await create_leave(db, employee, leave_request(days(3), days(5)), clock)
    assert exc_info.value.errors["start_date"] == ["You already have a leave request for these dates."]


@pytest.mark.asyncio
async def test_create_leave_allows_adjacent_range(db, employee, clock):
    await create_leave(db, employee, leave_request(days(1), days(3)), clock)
    leave = await create_leave(db, employee, leave_request(days(4), days(6)), clock)
    assert leave.total_days == 3


@pytest.mark.asyncio
async def test_approved_leave_blocks_but_rejected_does_not(db, employee, admin, clock):
    await insert_leave(db, employee, days(1), days(3), status=LeaveStatus.APPROVED, approver=admin)
    await insert_leave(db, employee, days(10), days(12), status=LeaveStatus.REJECTED, approver=admin)

    with pytest.raises(ValidationError):
        await create_leave(db, employee, leave_request(days(2), days(2)), clock)

    leave = await create_leave(db, employee, leave_request(days(10), days(12)), clock)
    assert leave.status == LeaveStatus.PENDING


@pytest.mark.asyncio
async def test_overlap_is_per_owner(db, employee, other_employee, clock):
    await create_leave(db, employee, leave_request(days(1), days(3)), clock)
    leave = await create_leave(db, other_employee, leave_request(days(1), days(3)), clock)
    assert leave.user_id == other_employee.id


@pytest.mark.asyncio
async def test_create_leave_enforces_cap_except_parental(db, employee, clock):
    with pytest.raises(ValidationError) as exc_info:
        await create_leave(db, employee, leave_request(days(1), days(31), LeaveType.SICK), clock)
    assert "end_date" in exc_info.value.errors

    leave = await create_leave(db, employee, leave_request(days(1), days(90), LeaveType.MATERNITY), clock)
    assert leave.total_days == 90


@pytest.mark.asyncio
async def test_create_leave_rejects_past_start_and_short_reason(db, employee, clock):
    with pytest.raises(ValidationError) as exc_info:
        await create_leave(db, employee, leave_request(days(-1), days(1), reason="Trip"), clock)
    assert set(exc_info.value.errors) == {"start_date", "reason"}

    result = await db.execute(select(Leave))
    assert result.scalars().all() == []


# --- view ---

@pytest.mark.asyncio
async def test_get_leave_owner_and_admin(db, employee, other_employee, admin):
    leave = await insert_leave(db, employee, days(1), days(1))

    assert (await get_leave(db, employee, leave.id)).id == leave.id
    assert (await get_leave(db, admin, leave.id)).id == leave.id
    with pytest.raises(AuthorizationError):
        await get_leave(db, other_employee, leave.id)


@pytest.mark.asyncio
async def test_get_leave_missing(db, admin):
    with pytest.raises(NotFoundError) as exc_info:
        await get_leave(db, admin, uuid.uuid4())
    assert exc_info.value.message == "Leave request not found"


# --- decide ---

@pytest.mark.asyncio
async def test_approve_sets_decision_fields(db, employee, admin, clock):
    leave = await insert_leave(db, employee, days(1), days(2))

    decided = await decide_leave(
        db, admin, leave.id, LeaveStatusUpdate(status=LeaveStatus.APPROVED, admin_comments="OK"), clock
    )

    assert decided.status == LeaveStatus.APPROVED
    assert decided.admin_comments == "OK"
    assert decided.approved_by == admin.id
    assert decided.approver.id == admin.id
    assert decided.approved_at.replace(tzinfo=None) == NOW.replace(tzinfo=None)


@pytest.mark.asyncio
async def test_decide_twice_fails(db, employee, admin, clock):
    leave = await insert_leave(db, employee, days(1), days(2))
    await decide_leave(db, admin, leave.id, LeaveStatusUpdate(status=LeaveStatus.REJECTED), clock)

    with pytest.raises(InvalidStateError):
        await decide_leave(db, admin, leave.id, LeaveStatusUpdate(status=LeaveStatus.APPROVED), clock)

    reloaded = await get_leave(db, admin, leave.id)
    assert reloaded.status == LeaveStatus.REJECTED


@pytest.mark.asyncio
async def test_employee_cannot_decide(db, employee, clock):
    leave = await insert_leave(db, employee, days(1), days(2))
    with pytest.raises(AuthorizationError):
        await decide_leave(db, employee, leave.id, LeaveStatusUpdate(status=LeaveStatus.APPROVED), clock)


def race_before_guarded_write(db, monkeypatch, competing_statement):
    """Commit `competing_statement` right before the first UPDATE or DELETE the service issues."""
    original_execute = db.execute
    raced = []

    async def racing_execute(statement, *args, **kwargs):
        if not raced and isinstance(statement, (Update, Delete)):
            raced.append(statement)
            await original_execute(competing_statement)
            await db.commit()
        return await original_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", racing_execute)
    return raced


async def stored_status(db, leave_id):
    result = await db.execute(select(Leave.status).where(Leave.id == leave_id))
    return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_concurrent_decision_is_rejected(db, employee, admin, clock, monkeypatch):
    leave = await insert_leave(db, employee, days(1), days(2))
    leave_id, admin_id = leave.id, admin.id

    # Another admin rejects the request between this read and this write
    raced = race_before_guarded_write(
        db,
        monkeypatch,
        update(Leave).where(Leave.id == leave_id).values(status=LeaveStatus.REJECTED, approved_by=admin_id),
    )

    with pytest.raises(InvalidStateError):
        await decide_leave(db, admin, leave_id, LeaveStatusUpdate(status=LeaveStatus.APPROVED), clock)

    assert raced
    assert await stored_status(db, leave_id) == LeaveStatus.REJECTED


@pytest.mark.asyncio
async def test_delete_racing_a_decision_is_rejected(db, employee, admin, monkeypatch):
    leave = await insert_leave(db, employee, days(1), days(2))
    leave_id, admin_id = leave.id, admin.id

    raced = race_before_guarded_write(
        db,
        monkeypatch,
        update(Leave).where(Leave.id == leave_id).values(status=LeaveStatus.APPROVED, approved_by=admin_id),
    )

    with pytest.raises(InvalidStateError):
        await delete_leave(db, employee, leave_id)

    assert raced
    assert await stored_status(db, leave_id) == LeaveStatus.APPROVED


# --- delete ---

@pytest.mark.asyncio
async def test_owner_deletes_pending(db, employee):
    leave = await insert_leave(db, employee, days(1), days(2))
    await delete_leave(db, employee, leave.id)

    with pytest.raises(NotFoundError):
        await get_leave(db, employee, leave.id)


@pytest.mark.asyncio
async def test_owner_cannot_delete_decided(db, employee, admin):
    leave = await insert_leave(db, employee, days(1), days(2), status=LeaveStatus.APPROVED, approver=admin)
    with pytest.raises(AuthorizationError):
        await delete_leave(db, employee, leave.id)


@pytest.mark.asyncio
async def test_others_cannot_delete(db, employee, other_employee, admin):
    leave = await insert_leave(db, employee, days(1), days(2))

    with pytest.raises(AuthorizationError):
        await delete_leave(db, other_employee, leave.id)
    with pytest.raises(AuthorizationError):
        await delete_leave(db, admin, leave.id)

    assert (await get_leave(db, employee, leave.id)).status == LeaveStatus.PENDING


@pytest.mark.asyncio
async def test_delete_missing(db, employee):
    with pytest.raises(NotFoundError):
        await delete_leave(db, employee, uuid.uuid4())


# --- list ---

@pytest.mark.asyncio
async def test_employee_only_lists_own(db, employee, other_employee, admin):
    await insert_leave(db, employee, days(1), days(1))
    await insert_leave(db, other_employee, days(2), days(2))

    # A foreign owner filter is ignored for employees
    leaves, total = await list_leaves(db, employee, ListFilters(owner_id=other_employee.id))
    assert total == 1
    assert [leave.user_id for leave in leaves] == [employee.id]

    leaves, total = await list_leaves(db, admin, ListFilters())
    assert total == 2

    leaves, total = await list_leaves(db, admin, ListFilters(owner_id=other_employee.id))
    assert [leave.user_id for leave in leaves] == [other_employee.id]


@pytest.mark.asyncio
async def test_list_filters_by_status_and_orders_newest_first(db, employee, admin):
    older = await insert_leave(db, employee, days(1), days(1), created_at=datetime(2026, 3, 1, tzinfo=timezone.utc))
    newer = await insert_leave(db, employee, days(3), days(3), created_at=datetime(2026, 3, 10, tzinfo=timezone.utc))
    await insert_leave(db, employee, days(5), days(5), status=LeaveStatus.APPROVED, approver=admin)

    leaves, total = await list_leaves(db, admin, ListFilters(status=LeaveStatus.PENDING))
    assert total == 2
    assert [leave.id for leave in leaves] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_list_pages_by_ten(db, employee, admin):
    for i in range(12):
        await insert_leave(db, employee, days(i + 1), days(i + 1))

    first, total = await list_leaves(db, admin, ListFilters(), page=1)
    second, _ = await list_leaves(db, admin, ListFilters(), page=2)

    assert total == 12
    assert len(first) == 10
    assert len(second) == 2
    assert not {leave.id for leave in first} & {leave.id for leave in second}


# --- statistics ---

def test_zero_fill_months():
    assert zero_fill_months({}) == [0] * 12
    assert zero_fill_months({1: 2, 12: 5}) == [2] + [0] * 10 + [5]


@pytest.mark.asyncio
async def test_statistics(db, employee, other_employee, admin, clock):
    await insert_leave(db, employee, days(1), days(1), created_at=datetime(2026, 3, 5, tzinfo=timezone.utc))
    await insert_leave(
        db, employee, days(5), days(6), status=LeaveStatus.APPROVED, approver=admin,
        leave_type=LeaveType.SICK, created_at=datetime(2026, 7, 20, tzinfo=timezone.utc),
    )
    # Previous year: counted in totals but not in this year's series
    await insert_leave(
        db, other_employee, date(2025, 3, 1), date(2025, 3, 2), status=LeaveStatus.REJECTED,
        approver=admin, created_at=datetime(2025, 3, 1, tzinfo=timezone.utc),
    )

    stats = await get_leave_statistics(db, admin, clock)

    assert stats.overview.total_leaves == 3
    assert stats.overview.pending_leaves == 1
    assert stats.overview.approved_leaves == 1
    assert stats.overview.rejected_leaves == 1
    assert stats.overview.total_employees == 2
    assert len(stats.monthly_leaves) == 12
    assert stats.monthly_leaves[2] == 1   # March
    assert stats.monthly_leaves[6] == 1   # July
    assert sum(stats.monthly_leaves) == 2
    assert stats.leave_type_stats == {"annual": 2, "sick": 1}


@pytest.mark.asyncio
async def test_statistics_empty_store(db, admin, clock):
    stats = await get_leave_statistics(db, admin, clock)
    assert stats.overview.total_leaves == 0
    assert stats.monthly_leaves == [0] * 12
    assert stats.leave_type_stats == {}


@pytest.mark.asyncio
async def test_statistics_admin_only(db, employee, clock):
    with pytest.raises(AuthorizationError):
        await get_leave_statistics(db, employee, clock)


@pytest.mark.asyncio
async def test_statistics_counts_only_employees(db, admin, clock):
    await create_user(db, role=UserRole.ADMIN)
    await create_user(db)
    stats = await get_leave_statistics(db, admin, clock)
    assert stats.overview.total_employees == 1


@pytest.mark.asyncio
async def test_statistics_year_matches_utc_buckets(db, employee, admin):
    # 18:30 on Dec 31 in Chicago is already Jan 1 in UTC
    clock = FrozenClock(datetime(2027, 1, 1, 0, 30, tzinfo=timezone.utc), "America/Chicago")
    assert clock.today() == date(2026, 12, 31)

    await insert_leave(db, employee, days(1), days(1), created_at=datetime(2027, 1, 1, 0, 10, tzinfo=timezone.utc))
    await insert_leave(db, employee, days(3), days(3), created_at=datetime(2026, 12, 31, 12, 0, tzinfo=timezone.utc))

    stats = await get_leave_statistics(db, admin, clock)

    assert stats.monthly_leaves[0] == 1
    assert sum(stats.monthly_leaves) == 1
    assert stats.overview.total_leaves == 2
