from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from uuid import UUID
from leave_api.models.user import UserRole
from leave_api.schemas.common import PaginationMeta
from leave_api.schemas.leave import LeaveResponse


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: str
    role: UserRole
    department: Optional[str] = None
    employee_id: str
    joining_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserListData(BaseModel):
    users: List[UserResponse]
    pagination: PaginationMeta


class UserLeaveCounts(BaseModel):
    total_leaves: int = 0
    pending_leaves: int = 0
    approved_leaves: int = 0
    rejected_leaves: int = 0


class UserDetail(BaseModel):
    user: UserResponse
    leave_statistics: UserLeaveCounts
    recent_leaves: List[LeaveResponse]


class UserData(BaseModel):
    user: UserResponse
