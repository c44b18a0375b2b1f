from sqlalchemy import Column, Text, ForeignKey, DateTime, Date, Integer, Enum, Index, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
import enum
from leave_api.core.database import Base


class LeaveType(str, enum.Enum):
    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    EMERGENCY = "emergency"


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that block an overlapping request for the same owner
ACTIVE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED)

# Terminal statuses reachable from pending
DECISION_STATUSES = (LeaveStatus.APPROVED, LeaveStatus.REJECTED)


class Leave(Base):
    __tablename__ = "leaves"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    leave_type = Column(Enum(LeaveType, values_callable=lambda x: [e.value for e in x]), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(LeaveStatus, values_callable=lambda x: [e.value for e in x]), nullable=False, default=LeaveStatus.PENDING)
    admin_comments = Column(Text, nullable=True)
    approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="leaves")
    approver = relationship("User", foreign_keys=[approved_by])

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_leaves_date_order"),
        CheckConstraint("total_days >= 1", name="ck_leaves_total_days_positive"),
        Index("idx_leaves_user_status", "user_id", "status"),
        Index("idx_leaves_status_created", "status", "created_at"),
    )

    @property
    def is_pending(self) -> bool:
        return self.status == LeaveStatus.PENDING
