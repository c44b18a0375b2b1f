from sqlalchemy import Column, String, Enum, DateTime, Date, Uuid, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from leave_api.core.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    # Immutable once the account exists
    role = Column(Enum(UserRole, values_callable=lambda x: [e.value for e in x]), nullable=False, default=UserRole.EMPLOYEE)
    employee_id = Column(String(50), nullable=False, unique=True, index=True)
    department = Column(String(100), nullable=True)
    joining_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    leaves = relationship("Leave", back_populates="user", foreign_keys="Leave.user_id", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_users_role_created", "role", "created_at"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_employee(self) -> bool:
        return self.role == UserRole.EMPLOYEE
