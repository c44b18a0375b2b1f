from typing import Dict, List, Mapping, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func, extract
from sqlalchemy.exc import SQLAlchemyError
import logging

from leave_api.core.clock import Clock
from leave_api.core.exceptions import InvalidStateError, NotFoundError, UnexpectedError
from leave_api.core.query_builder import PAGE_SIZE, get_paginated_results, build_leave_query, with_leave_relations
from leave_api.models.leave import Leave, LeaveStatus, ACTIVE_STATUSES
from leave_api.models.user import User, UserRole
from leave_api.schemas.common import ListFilters
from leave_api.schemas.leave import LeaveCreate, LeaveStatusUpdate, LeaveStatistics, StatisticsOverview
from leave_api.services.date_range import DateRange
from leave_api.services.leave_lifecycle import build_leave, decide
from leave_api.services.leave_policy import Action, authorize, scope_leave_filters

logger = logging.getLogger(__name__)


async def get_leave_by_id(
    db: AsyncSession,
    leave_id: UUID,
) -> Leave:
    """Load a leave with its owner and approver, bypassing any stale identity-map copy."""
    result = await db.execute(
        with_leave_relations(select(Leave).where(Leave.id == leave_id))
        .execution_options(populate_existing=True)
    )
    leave = result.scalar_one_or_none()
    if not leave:
        raise NotFoundError("Leave request not found")
    return leave


async def get_active_ranges(
    db: AsyncSession,
    owner_id: UUID,
) -> List[DateRange]:
    """Date ranges of the owner's pending and approved requests."""
    result = await db.execute(
        select(Leave.start_date, Leave.end_date).where(
            Leave.user_id == owner_id,
            Leave.status.in_(ACTIVE_STATUSES),
        )
    )
    return [DateRange(start, end) for start, end in result.all()]


async def list_leaves(
    db: AsyncSession,
    actor: User,
    filters: ListFilters,
    page: int = 1,
) -> Tuple[List[Leave], int]:
    """Leaves visible to the actor, newest first."""
    authorize(actor, Action.LIST)
    query = build_leave_query(scope_leave_filters(actor, filters))

    return await get_paginated_results(
        db,
        query,
        page=page,
        per_page=PAGE_SIZE,
        order_by=(Leave.created_at.desc(), Leave.id),
    )


async def create_leave(
    db: AsyncSession,
    actor: User,
    data: LeaveCreate,
    clock: Clock,
) -> Leave:
    """Submit a leave request owned by the actor."""
    authorize(actor, Action.CREATE)

    # Lock the owner row so concurrent submissions by the same owner run the
    # overlap check one after the other
    await db.execute(select(User.id).where(User.id == actor.id).with_for_update())
    active_ranges = await get_active_ranges(db, actor.id)

    leave = build_leave(
        owner_id=actor.id,
        leave_type=data.leave_type,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
        today=clock.today(),
        active_ranges=active_ranges,
    )

    try:
        db.add(leave)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to store leave request", exc_info=True)
        raise UnexpectedError("Failed to submit leave request", detail=str(e)) from e

    logger.info(
        f"Leave request {leave.id} submitted by {actor.id} "
        f"({leave.leave_type.value}, {leave.start_date} to {leave.end_date}, {leave.total_days} days)"
    )
    return await get_leave_by_id(db, leave.id)


async def get_leave(
    db: AsyncSession,
    actor: User,
    leave_id: UUID,
) -> Leave:
    leave = await get_leave_by_id(db, leave_id)
    authorize(actor, Action.VIEW, leave)
    return leave


async def decide_leave(
    db: AsyncSession,
    actor: User,
    leave_id: UUID,
    data: LeaveStatusUpdate,
    clock: Clock,
) -> Leave:
    """Approve or reject a pending leave request."""
    leave = await get_leave_by_id(db, leave_id)
    authorize(actor, Action.DECIDE, leave)
    values = decide(leave, actor, data.status, clock.now(), data.admin_comments)
    # A rollback expires every loaded instance; only these plain values are used past the write
    actor_id = actor.id

    # The status guard makes a racing second decision update nothing
    try:
        result = await db.execute(
            update(Leave)
            .where(Leave.id == leave_id, Leave.status == LeaveStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            logger.warning(f"Leave request {leave_id} was decided concurrently")
            raise InvalidStateError()
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to update leave status", exc_info=True)
        raise UnexpectedError("Failed to update leave status", detail=str(e)) from e

    logger.info(f"Leave request {leave_id} {data.status.value} by {actor_id}")
    return await get_leave_by_id(db, leave_id)


async def delete_leave(
    db: AsyncSession,
    actor: User,
    leave_id: UUID,
) -> None:
    """Withdraw the actor's own pending request."""
    leave = await get_leave_by_id(db, leave_id)
    authorize(actor, Action.DELETE, leave)
    actor_id = actor.id

    try:
        result = await db.execute(
            delete(Leave)
            .where(
                Leave.id == leave_id,
                Leave.user_id == actor_id,
                Leave.status == LeaveStatus.PENDING,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            logger.warning(f"Leave request {leave_id} was decided or deleted concurrently")
            raise InvalidStateError()
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to delete leave request", exc_info=True)
        raise UnexpectedError("Failed to delete leave request", detail=str(e)) from e

    logger.info(f"Leave request {leave_id} deleted by {actor_id}")


def zero_fill_months(month_counts: Mapping[int, int]) -> List[int]:
    """Twelve counts, slot 0 for January through slot 11 for December."""
    return [int(month_counts.get(month, 0)) for month in range(1, 13)]


def _enum_key(value) -> str:
    return getattr(value, "value", value)


async def get_leave_statistics(
    db: AsyncSession,
    actor: User,
    clock: Clock,
) -> LeaveStatistics:
    """Totals by status, monthly submissions this year and counts by leave type."""
    authorize(actor, Action.STATISTICS)

    status_result = await db.execute(
        select(Leave.status, func.count(Leave.id)).group_by(Leave.status)
    )
    by_status: Dict[str, int] = {_enum_key(s): count for s, count in status_result.all()}

    employees_result = await db.execute(
        select(func.count(User.id)).where(User.role == UserRole.EMPLOYEE)
    )
    total_employees = employees_result.scalar() or 0

    # created_at is stored in UTC, so the year is taken in UTC as well
    year = clock.now().year
    month = extract("month", Leave.created_at).label("month")
    monthly_result = await db.execute(
        select(month, func.count(Leave.id))
        .where(extract("year", Leave.created_at) == year)
        .group_by(month)
    )
    month_counts = {int(m): count for m, count in monthly_result.all()}

    type_result = await db.execute(
        select(Leave.leave_type, func.count(Leave.id)).group_by(Leave.leave_type)
    )
    leave_type_stats = {_enum_key(t): count for t, count in type_result.all()}

    return LeaveStatistics(
        overview=StatisticsOverview(
            total_leaves=sum(by_status.values()),
            pending_leaves=by_status.get(LeaveStatus.PENDING.value, 0),
            approved_leaves=by_status.get(LeaveStatus.APPROVED.value, 0),
            rejected_leaves=by_status.get(LeaveStatus.REJECTED.value, 0),
            total_employees=total_employees,
        ),
        monthly_leaves=zero_fill_months(month_counts),
        leave_type_stats=leave_type_stats,
    )
