import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "leave_api_test_logs"))

import pytest
import uuid
from datetime import date, datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import leave_api.models  # noqa: F401
from leave_api.core.clock import Clock, get_clock
from leave_api.core.database import Base, get_db
from leave_api.core.security import create_access_token, get_password_hash
from leave_api.main import app
from leave_api.models.leave import Leave, LeaveStatus, LeaveType
from leave_api.models.user import User, UserRole
from leave_api.services.date_range import calculate_total_days

NOW = datetime(2026, 3, 16, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()
PASSWORD = "Secret123"


class FrozenClock(Clock):
    def __init__(self, now: datetime = NOW, timezone_str: str = "UTC"):
        super().__init__(timezone_str)
        self._now = now

    def now(self) -> datetime:
        return self._now


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
async def client(session_factory, clock) -> AsyncClient:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def create_user(
    db: AsyncSession,
    role: UserRole = UserRole.EMPLOYEE,
    name: str = "Test Employee",
    email: str = None,
    employee_id: str = None,
    department: str = None,
) -> User:
    suffix = uuid.uuid4().hex[:8]
    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email or f"user-{suffix}@example.com",
        password_hash=get_password_hash(PASSWORD),
        role=role,
        employee_id=employee_id or f"EMP-{suffix}",
        department=department,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def create_leave(
    db: AsyncSession,
    owner: User,
    start: date,
    end: date,
    status: LeaveStatus = LeaveStatus.PENDING,
    leave_type: LeaveType = LeaveType.ANNUAL,
    approver: User = None,
    created_at: datetime = None,
) -> Leave:
    """Insert a leave row directly, bypassing the business rules."""
    leave = Leave(
        id=uuid.uuid4(),
        user_id=owner.id,
        leave_type=leave_type,
        start_date=start,
        end_date=end,
        total_days=calculate_total_days(start, end),
        reason="Seeded leave request",
        status=status,
        approved_by=approver.id if approver else None,
        approved_at=NOW if approver else None,
        created_at=created_at or NOW,
    )
    db.add(leave)
    await db.commit()
    await db.refresh(leave)
    return leave


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def days(n: int) -> date:
    """TODAY shifted by n days."""
    return TODAY + timedelta(days=n)


@pytest.fixture
async def admin(db: AsyncSession) -> User:
    return await create_user(db, role=UserRole.ADMIN, name="Test Admin", email="admin@example.com", employee_id="ADMIN001")


@pytest.fixture
async def employee(db: AsyncSession) -> User:
    return await create_user(db, name="John Doe", email="john@example.com", employee_id="EMP001", department="Finance")


@pytest.fixture
async def other_employee(db: AsyncSession) -> User:
    return await create_user(db, name="Jane Smith", email="jane@example.com", employee_id="EMP002", department="Marketing")
