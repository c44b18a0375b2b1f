from leave_api.models.user import User
from leave_api.models.session import Session
from leave_api.models.leave import Leave

__all__ = [
    "User",
    "Session",
    "Leave",
]
