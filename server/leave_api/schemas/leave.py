from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date, datetime
from uuid import UUID
from leave_api.models.leave import LeaveType, LeaveStatus, DECISION_STATUSES
from leave_api.schemas.common import PaginationMeta


class LeaveCreate(BaseModel):
    # Date ordering and reason length are business rules checked by the service
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str


class LeaveStatusUpdate(BaseModel):
    status: LeaveStatus
    admin_comments: Optional[str] = Field(None, max_length=500)

    @field_validator('status')
    @classmethod
    def validate_decision(cls, v: LeaveStatus) -> LeaveStatus:
        if v not in DECISION_STATUSES:
            raise ValueError("Invalid status. Please select approve or reject.")
        return v


class UserSummary(BaseModel):
    id: UUID
    name: str
    email: str
    employee_id: str
    department: Optional[str] = None

    class Config:
        from_attributes = True


class LeaveResponse(BaseModel):
    id: UUID
    user_id: UUID
    leave_type: LeaveType
    start_date: date
    end_date: date
    total_days: int
    reason: str
    status: LeaveStatus
    admin_comments: Optional[str] = None
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    approver: Optional[UserSummary] = None

    class Config:
        from_attributes = True


class LeaveData(BaseModel):
    leave: LeaveResponse


class LeaveListData(BaseModel):
    leaves: List[LeaveResponse]
    pagination: PaginationMeta


class StatisticsOverview(BaseModel):
    total_leaves: int
    pending_leaves: int
    approved_leaves: int
    rejected_leaves: int
    total_employees: int


class LeaveStatistics(BaseModel):
    overview: StatisticsOverview
    monthly_leaves: List[int]
    leave_type_stats: Dict[str, int]
