"""
Query builders for the list endpoints. Filters come in as a validated
ListFilters model, never as loose request parameters.
"""
from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload

from leave_api.models.leave import Leave
from leave_api.models.user import User
from leave_api.schemas.common import ListFilters

PAGE_SIZE = 10


async def get_paginated_results(
    db: AsyncSession,
    query,
    page: int = 1,
    per_page: int = PAGE_SIZE,
    order_by=None,
) -> Tuple[List, int]:
    """
    Execute a paginated query and return results with total count.

    Args:
        db: Database session
        query: SQLAlchemy select query
        page: 1-based page number
        per_page: Page size
        order_by: Column(s) to order by (optional)

    Returns:
        Tuple of (results_list, total_count)
    """
    # Get total count
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    count_result = await db.execute(count_query)
    total = count_result.scalar() or 0

    # Apply ordering if provided
    if order_by is not None:
        if isinstance(order_by, (list, tuple)):
            query = query.order_by(*order_by)
        else:
            query = query.order_by(order_by)

    # Apply pagination
    skip = (max(page, 1) - 1) * per_page
    result = await db.execute(query.offset(skip).limit(per_page))
    items = result.scalars().all()

    return list(items), total


def with_leave_relations(query):
    """Eager-load the owner and the deciding admin of each leave."""
    return query.options(selectinload(Leave.user), selectinload(Leave.approver))


def build_leave_query(filters: ListFilters):
    """Leave listing filtered by status and owner."""
    query = with_leave_relations(select(Leave))

    if filters.status is not None:
        query = query.where(Leave.status == filters.status)
    if filters.owner_id is not None:
        query = query.where(Leave.user_id == filters.owner_id)

    return query


def build_user_query(filters: ListFilters):
    """User listing filtered by role and a substring search on name, email and employee id."""
    query = select(User)

    if filters.role is not None:
        query = query.where(User.role == filters.role)
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(
            or_(
                User.name.ilike(pattern),
                User.email.ilike(pattern),
                User.employee_id.ilike(pattern),
            )
        )

    return query
