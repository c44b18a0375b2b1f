from pydantic import BaseModel, Field, field_validator
from typing import Dict, Generic, List, Optional, TypeVar
from uuid import UUID
from leave_api.models.leave import LeaveStatus
from leave_api.models.user import UserRole

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Uniform wrapper for every API response."""
    success: bool = True
    data: Optional[DataT] = None
    message: Optional[str] = None
    error: Optional[str] = None
    errors: Optional[Dict[str, List[str]]] = None


class PaginationMeta(BaseModel):
    current_page: int
    last_page: int
    per_page: int
    total: int

    @classmethod
    def build(cls, page: int, per_page: int, total: int) -> "PaginationMeta":
        last_page = max(1, -(-total // per_page))
        return cls(current_page=page, last_page=last_page, per_page=per_page, total=total)


class ListFilters(BaseModel):
    """Explicit filters accepted by the list operations."""
    status: Optional[LeaveStatus] = None
    owner_id: Optional[UUID] = None
    role: Optional[UserRole] = None
    search: Optional[str] = Field(None, max_length=255)

    @field_validator('search')
    @classmethod
    def strip_search(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None
