from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID

from leave_api.core.clock import Clock, get_clock
from leave_api.core.database import get_db
from leave_api.core.dependencies import get_current_user, require_action
from leave_api.core.error_handling import handle_endpoint_errors, parse_uuid
from leave_api.core.query_builder import PAGE_SIZE
from leave_api.models.user import User
from leave_api.models.leave import LeaveStatus
from leave_api.schemas.common import Envelope, ListFilters, PaginationMeta
from leave_api.schemas.leave import (
    LeaveCreate,
    LeaveStatusUpdate,
    LeaveResponse,
    LeaveData,
    LeaveListData,
    LeaveStatistics,
)
from leave_api.services.leave_policy import Action
from leave_api.services.leave_service import (
    list_leaves,
    create_leave,
    get_leave,
    decide_leave,
    delete_leave,
    get_leave_statistics,
)

router = APIRouter()


@router.get("", response_model=Envelope[LeaveListData])
@handle_endpoint_errors(operation_name="list_leaves", failure_message="Failed to fetch leaves")
async def list_leaves_endpoint(
    status: Optional[LeaveStatus] = Query(None),
    user_id: Optional[UUID] = Query(None),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List leave requests. Employees only see their own."""
    filters = ListFilters(status=status, owner_id=user_id)
    leaves, total = await list_leaves(db, current_user, filters, page)

    return Envelope(
        data=LeaveListData(
            leaves=[LeaveResponse.model_validate(leave) for leave in leaves],
            pagination=PaginationMeta.build(page, PAGE_SIZE, total),
        )
    )


@router.post("", response_model=Envelope[LeaveData], status_code=status.HTTP_201_CREATED)
@handle_endpoint_errors(operation_name="create_leave", failure_message="Failed to submit leave request")
async def create_leave_endpoint(
    data: LeaveCreate,
    current_user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db),
):
    """Submit a leave request for the current user."""
    leave = await create_leave(db, current_user, data, clock)
    return Envelope(
        message="Leave request submitted successfully",
        data=LeaveData(leave=LeaveResponse.model_validate(leave)),
    )


# Registered before /{leave_id} so "statistics" is not parsed as an id
@router.get("/statistics/overview", response_model=Envelope[LeaveStatistics])
@handle_endpoint_errors(operation_name="leave_statistics", failure_message="Failed to fetch statistics")
async def leave_statistics_endpoint(
    current_user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db),
):
    """Aggregate leave statistics (admin only)."""
    stats = await get_leave_statistics(db, current_user, clock)
    return Envelope(data=stats)


@router.get("/{leave_id}", response_model=Envelope[LeaveData])
@handle_endpoint_errors(operation_name="get_leave", failure_message="Failed to fetch leave details")
async def get_leave_endpoint(
    leave_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    leave = await get_leave(db, current_user, parse_uuid(leave_id, "Leave ID"))
    return Envelope(data=LeaveData(leave=LeaveResponse.model_validate(leave)))


@router.put("/{leave_id}", response_model=Envelope[LeaveData])
@handle_endpoint_errors(operation_name="decide_leave", failure_message="Failed to update leave status")
async def decide_leave_endpoint(
    leave_id: str,
    data: LeaveStatusUpdate,
    current_user: User = Depends(require_action(Action.DECIDE)),
    clock: Clock = Depends(get_clock),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a pending leave request (admin only)."""
    leave = await decide_leave(db, current_user, parse_uuid(leave_id, "Leave ID"), data, clock)
    return Envelope(
        message=f"Leave request {leave.status.value} successfully",
        data=LeaveData(leave=LeaveResponse.model_validate(leave)),
    )


@router.delete("/{leave_id}", response_model=Envelope[None])
@handle_endpoint_errors(operation_name="delete_leave", failure_message="Failed to delete leave request")
async def delete_leave_endpoint(
    leave_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete one of the current user's pending requests."""
    await delete_leave(db, current_user, parse_uuid(leave_id, "Leave ID"))
    return Envelope(message="Leave request deleted successfully")
