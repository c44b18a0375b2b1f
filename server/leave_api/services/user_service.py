from typing import Dict, List, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
import logging
import uuid

from leave_api.core.clock import Clock
from leave_api.core.exceptions import NotFoundError, ValidationError
from leave_api.core.query_builder import PAGE_SIZE, get_paginated_results, build_user_query, with_leave_relations
from leave_api.core.security import get_password_hash, normalize_email, validate_password_strength
from leave_api.models.leave import Leave, LeaveStatus
from leave_api.models.user import User, UserRole
from leave_api.schemas.auth import RegisterRequest
from leave_api.schemas.common import ListFilters
from leave_api.schemas.leave import LeaveResponse
from leave_api.schemas.user import UserDetail, UserLeaveCounts, UserResponse
from leave_api.services.leave_policy import Action, authorize

logger = logging.getLogger(__name__)

RECENT_LEAVES_LIMIT = 5


async def get_user_by_id(
    db: AsyncSession,
    user_id: UUID,
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def list_users(
    db: AsyncSession,
    actor: User,
    filters: ListFilters,
    page: int = 1,
) -> Tuple[List[User], int]:
    """List users (admin only), newest first."""
    authorize(actor, Action.LIST_USERS)
    query = build_user_query(filters)

    return await get_paginated_results(
        db,
        query,
        page=page,
        per_page=PAGE_SIZE,
        order_by=(User.created_at.desc(), User.id),
    )


async def get_leave_counts(
    db: AsyncSession,
    user_id: UUID,
) -> UserLeaveCounts:
    result = await db.execute(
        select(Leave.status, func.count(Leave.id))
        .where(Leave.user_id == user_id)
        .group_by(Leave.status)
    )
    by_status: Dict[LeaveStatus, int] = {LeaveStatus(s): count for s, count in result.all()}

    return UserLeaveCounts(
        total_leaves=sum(by_status.values()),
        pending_leaves=by_status.get(LeaveStatus.PENDING, 0),
        approved_leaves=by_status.get(LeaveStatus.APPROVED, 0),
        rejected_leaves=by_status.get(LeaveStatus.REJECTED, 0),
    )


async def get_recent_leaves(
    db: AsyncSession,
    user_id: UUID,
    limit: int = RECENT_LEAVES_LIMIT,
) -> List[Leave]:
    result = await db.execute(
        with_leave_relations(select(Leave).where(Leave.user_id == user_id))
        .order_by(Leave.created_at.desc(), Leave.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_user_detail(
    db: AsyncSession,
    actor: User,
    user_id: UUID,
) -> UserDetail:
    """Profile plus leave counts and the most recent requests (admin or self)."""
    user = await get_user_by_id(db, user_id)
    authorize(actor, Action.VIEW_USER, user)

    counts = await get_leave_counts(db, user.id)
    recent = await get_recent_leaves(db, user.id)

    return UserDetail(
        user=UserResponse.model_validate(user),
        leave_statistics=counts,
        recent_leaves=[LeaveResponse.model_validate(leave) for leave in recent],
    )


async def register_user(
    db: AsyncSession,
    data: RegisterRequest,
    clock: Clock,
) -> User:
    """Create an employee account."""
    errors: Dict[str, List[str]] = {}
    email = normalize_email(data.email)
    employee_id = data.employee_id.strip()

    is_valid, error_msg = validate_password_strength(data.password)
    if not is_valid:
        errors.setdefault("password", []).append(error_msg)
    if data.password != data.password_confirmation:
        errors.setdefault("password", []).append("Password confirmation does not match.")

    if data.joining_date and data.joining_date > clock.today():
        errors.setdefault("joining_date", []).append("Joining date cannot be in the future.")

    result = await db.execute(
        select(User.email, User.employee_id).where(
            or_(User.email == email, User.employee_id == employee_id)
        )
    )
    for existing_email, existing_employee_id in result.all():
        if existing_email == email:
            errors.setdefault("email", []).append("This email address is already registered.")
        if existing_employee_id == employee_id:
            errors.setdefault("employee_id", []).append("This employee ID is already taken.")

    if errors:
        raise ValidationError(errors)

    user = User(
        id=uuid.uuid4(),
        name=data.name.strip(),
        email=email,
        password_hash=get_password_hash(data.password),
        role=UserRole.EMPLOYEE,
        employee_id=employee_id,
        department=data.department,
        joining_date=data.joining_date,
    )

    try:
        db.add(user)
        await db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration using the same email or employee id
        await db.rollback()
        raise ValidationError(
            {"email": ["This email address or employee ID is already registered."]}
        ) from e

    await db.refresh(user)
    logger.info(f"Registered employee {user.id} ({user.employee_id})")
    return user
