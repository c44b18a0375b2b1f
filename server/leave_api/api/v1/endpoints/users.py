from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from leave_api.core.database import get_db
from leave_api.core.dependencies import get_current_user
from leave_api.core.error_handling import handle_endpoint_errors, parse_uuid
from leave_api.core.query_builder import PAGE_SIZE
from leave_api.models.user import User, UserRole
from leave_api.schemas.common import Envelope, ListFilters, PaginationMeta
from leave_api.schemas.user import UserResponse, UserListData, UserDetail
from leave_api.services.user_service import list_users, get_user_detail

router = APIRouter()


@router.get("/users", response_model=Envelope[UserListData])
@handle_endpoint_errors(operation_name="list_users", failure_message="Failed to fetch users")
async def list_users_endpoint(
    role: Optional[UserRole] = Query(None),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List users (admin only)."""
    filters = ListFilters(role=role, search=search)
    users, total = await list_users(db, current_user, filters, page)

    return Envelope(
        data=UserListData(
            users=[UserResponse.model_validate(user) for user in users],
            pagination=PaginationMeta.build(page, PAGE_SIZE, total),
        )
    )


@router.get("/users/{user_id}", response_model=Envelope[UserDetail])
@handle_endpoint_errors(operation_name="get_user", failure_message="Failed to fetch user details")
async def get_user_endpoint(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """User profile with leave statistics (admin or the user themself)."""
    detail = await get_user_detail(db, current_user, parse_uuid(user_id, "User ID"))
    return Envelope(data=detail)


@router.get("/profile", response_model=Envelope[UserDetail])
@handle_endpoint_errors(operation_name="get_profile", failure_message="Failed to fetch user details")
async def get_profile_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current user's profile with leave statistics."""
    detail = await get_user_detail(db, current_user, current_user.id)
    return Envelope(data=detail)
