"""
Leave request state machine.

    pending --approve--> approved
    pending --reject---> rejected

Both decisions are terminal. Nothing here touches the database: `build_leave`
returns an unsaved entity and `decide` returns the column values the
transition writes.
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID
import uuid

from leave_api.core.exceptions import InvalidStateError, ValidationError
from leave_api.models.leave import Leave, LeaveStatus, LeaveType, DECISION_STATUSES
from leave_api.models.user import User
from leave_api.services.date_range import DateRange, calculate_total_days, collect_date_errors

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 500
COMMENTS_MAX_LENGTH = 500


def collect_reason_errors(reason: Optional[str]) -> Dict[str, List[str]]:
    reason = (reason or "").strip()
    if not reason:
        return {"reason": ["Please provide a reason for your leave."]}
    if len(reason) < REASON_MIN_LENGTH:
        return {"reason": [f"Reason must be at least {REASON_MIN_LENGTH} characters long."]}
    if len(reason) > REASON_MAX_LENGTH:
        return {"reason": [f"Reason cannot exceed {REASON_MAX_LENGTH} characters."]}
    return {}


def build_leave(
    owner_id: UUID,
    leave_type: LeaveType,
    start_date: date,
    end_date: date,
    reason: str,
    today: date,
    active_ranges: Iterable[DateRange] = (),
) -> Leave:
    """Validate a new request and return it in the pending state."""
    errors = collect_reason_errors(reason)
    for field, messages in collect_date_errors(start_date, end_date, leave_type, today, active_ranges).items():
        errors.setdefault(field, []).extend(messages)
    if errors:
        raise ValidationError(errors)

    return Leave(
        id=uuid.uuid4(),
        user_id=owner_id,
        leave_type=leave_type,
        start_date=start_date,
        end_date=end_date,
        total_days=calculate_total_days(start_date, end_date),
        reason=reason.strip(),
        status=LeaveStatus.PENDING,
    )


def ensure_pending(leave: Leave) -> None:
    if not leave.is_pending:
        raise InvalidStateError()


def decide(
    leave: Leave,
    admin: User,
    decision: LeaveStatus,
    decided_at: datetime,
    comments: Optional[str] = None,
) -> Dict[str, Any]:
    """Check the transition out of pending and return the values it sets."""
    ensure_pending(leave)

    if decision not in DECISION_STATUSES:
        raise ValidationError.single("status", "Invalid status. Please select approve or reject.")
    if comments is not None and len(comments) > COMMENTS_MAX_LENGTH:
        raise ValidationError.single("admin_comments", f"Comments cannot exceed {COMMENTS_MAX_LENGTH} characters.")

    return {
        "status": decision,
        "admin_comments": comments or None,
        "approved_by": admin.id,
        "approved_at": decided_at,
    }
