"""
Seed script to create a sample admin, employees and leave requests.
Run with: python -m scripts.seed_data
"""
import asyncio
import sys
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sqlalchemy import select
from leave_api.core.database import AsyncSessionLocal, engine
from leave_api.core.security import get_password_hash
from leave_api.models.user import User, UserRole
from leave_api.models.leave import Leave, LeaveStatus, LeaveType
from leave_api.services.date_range import calculate_total_days
import uuid

DEFAULT_PASSWORD = "password1"

EMPLOYEES = [
    {"name": "John Doe", "email": "employee1@example.com", "department": "Human Resources",
     "employee_id": "EMP001", "joining_date": date(2023, 2, 15)},
    {"name": "Jane Smith", "email": "jane.smith@example.com", "department": "Marketing",
     "employee_id": "EMP002", "joining_date": date(2023, 3, 10)},
    {"name": "Mike Johnson", "email": "mike.johnson@example.com", "department": "Development",
     "employee_id": "EMP003", "joining_date": date(2023, 1, 20)},
]


def make_leave(owner, leave_type, start, end, reason, status=LeaveStatus.PENDING,
               admin=None, comments=None, decided_at=None) -> Leave:
    return Leave(
        id=uuid.uuid4(),
        user_id=owner.id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        total_days=calculate_total_days(start, end),
        reason=reason,
        status=status,
        admin_comments=comments,
        approved_by=admin.id if admin else None,
        approved_at=decided_at,
    )


async def seed_data():
    """Seed the database with sample data."""
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(User).where(User.role == UserRole.ADMIN))
        if result.scalars().first():
            print("An admin already exists. Skipping seed.")
            return

        admin = User(
            id=uuid.uuid4(),
            name="System Administrator",
            email="admin@example.com",
            password_hash=get_password_hash(DEFAULT_PASSWORD),
            role=UserRole.ADMIN,
            department="IT Administration",
            employee_id="ADMIN001",
            joining_date=date(2023, 1, 1),
        )
        db.add(admin)

        employees = []
        for data in EMPLOYEES:
            employee = User(
                id=uuid.uuid4(),
                password_hash=get_password_hash(DEFAULT_PASSWORD),
                role=UserRole.EMPLOYEE,
                **data,
            )
            db.add(employee)
            employees.append(employee)
        await db.flush()

        today = date.today()
        now = datetime.now(timezone.utc)
        for index, employee in enumerate(employees):
            db.add(make_leave(
                employee, LeaveType.ANNUAL,
                today + timedelta(days=10), today + timedelta(days=12),
                "Family vacation planned for the holidays.",
            ))
            db.add(make_leave(
                employee, LeaveType.SICK,
                today - timedelta(days=15), today - timedelta(days=13),
                "Flu and fever, need rest to recover.",
                status=LeaveStatus.APPROVED, admin=admin,
                comments="Approved. Get well soon!", decided_at=now - timedelta(days=16),
            ))
            if index % 2 == 1:
                db.add(make_leave(
                    employee, LeaveType.PERSONAL,
                    today + timedelta(days=5), today + timedelta(days=7),
                    "Personal matters to attend to.",
                    status=LeaveStatus.REJECTED, admin=admin,
                    comments="Sorry, we have a critical project deadline during this period.",
                    decided_at=now - timedelta(days=2),
                ))

        db.add(make_leave(
            employees[0], LeaveType.MATERNITY,
            today + timedelta(days=60), today + timedelta(days=149),
            "Maternity leave for upcoming delivery.",
        ))

        await db.commit()
        print(f"Seeded 1 admin and {len(employees)} employees (password: {DEFAULT_PASSWORD})")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_data())
