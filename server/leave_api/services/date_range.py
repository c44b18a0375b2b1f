"""
Date rules for new leave requests.

Ranges are inclusive on both ends: a request from the 1st to the 1st is one
day long, and two ranges that share a single boundary day overlap.
"""
from datetime import date
from typing import Dict, Iterable, List, NamedTuple

from leave_api.models.leave import LeaveType

MAX_STANDARD_LEAVE_DAYS = 30

# Leave types exempt from the MAX_STANDARD_LEAVE_DAYS cap
UNCAPPED_LEAVE_TYPES = frozenset({LeaveType.MATERNITY, LeaveType.PATERNITY})


class DateRange(NamedTuple):
    start: date
    end: date

    def overlaps(self, other: "DateRange") -> bool:
        return self.start <= other.end and other.start <= self.end


def calculate_total_days(start_date: date, end_date: date) -> int:
    """Inclusive number of calendar days between two dates."""
    return (end_date - start_date).days + 1


def collect_date_errors(
    start_date: date,
    end_date: date,
    leave_type: LeaveType,
    today: date,
    active_ranges: Iterable[DateRange],
) -> Dict[str, List[str]]:
    """Return field-keyed messages for every rule the range breaks (empty when valid)."""
    errors: Dict[str, List[str]] = {}

    if start_date < today:
        errors.setdefault("start_date", []).append("Start date cannot be in the past.")

    if end_date < start_date:
        errors.setdefault("end_date", []).append("End date must be on or after the start date.")
        # Length and overlap are meaningless for an inverted range
        return errors

    total_days = calculate_total_days(start_date, end_date)
    if leave_type not in UNCAPPED_LEAVE_TYPES and total_days > MAX_STANDARD_LEAVE_DAYS:
        errors.setdefault("end_date", []).append(
            f"Leave duration cannot exceed {MAX_STANDARD_LEAVE_DAYS} days for this leave type."
        )

    requested = DateRange(start_date, end_date)
    if any(requested.overlaps(existing) for existing in active_ranges):
        errors.setdefault("start_date", []).append("You already have a leave request for these dates.")

    return errors
