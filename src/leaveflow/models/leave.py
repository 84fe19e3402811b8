"""Leave request and approval step models."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from leaveflow.models.base import Base, TimestampMixin


class LeaveRequestRecord(Base, TimestampMixin):
    """Leave request table."""

    __tablename__ = "leave_requests"

    # Primary key
    id: Mapped[str] = mapped_column(String(50), primary_key=True)

    # Request info
    staff_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    leave_type: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    day_count: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status
    status: Mapped[str] = mapped_column(
        String(20), default="PENDING", nullable=False, index=True
    )
    hr_validated: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Resubmission
    resubmitted_from_id: Mapped[Optional[str]] = mapped_column(
        String(50), ForeignKey("leave_requests.id"), nullable=True
    )
    resubmission_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # External clearance
    requires_external_clearance: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    external_clearance_status: Mapped[Optional[str]] = mapped_column(
        String(20), nullable=True
    )
    psc_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    ohcs_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    external_clearance_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Bookkeeping
    idempotency_key: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    override_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    steps: Mapped[list["ApprovalStepRecord"]] = relationship(
        "ApprovalStepRecord",
        back_populates="request",
        lazy="selectin",
        order_by="ApprovalStepRecord.level",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_leave_idempotency_key"),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="leave_status",
        ),
        CheckConstraint(
            "external_clearance_status IN ('PENDING', 'CLEARED', 'REJECTED') "
            "OR external_clearance_status IS NULL",
            name="leave_clearance_status",
        ),
        CheckConstraint("resubmission_count >= 0", name="leave_resubmission_count"),
    )


class ApprovalStepRecord(Base):
    """Approval step table, one row per level of a request."""

    __tablename__ = "approval_steps"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign key
    request_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("leave_requests.id"), nullable=False, index=True
    )

    # Level
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_role: Mapped[str] = mapped_column(String(40), nullable=False)
    approver_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    approver_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    resolution_source: Mapped[str] = mapped_column(
        String(20), default="NOMINAL", nullable=False
    )
    original_approver_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    activated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Decision
    status: Mapped[str] = mapped_column(String(20), default="PENDING", nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approval_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    decided_by: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    auto_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Escalation
    escalated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    escalated_to: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    escalated_to_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    escalation_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    request: Mapped["LeaveRequestRecord"] = relationship(
        "LeaveRequestRecord", back_populates="steps"
    )

    __table_args__ = (
        UniqueConstraint("request_id", "level", name="uq_step_level"),
        Index("idx_step_approver_status", "approver_id", "status"),
        CheckConstraint("level >= 1", name="step_level_positive"),
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')", name="step_status"
        ),
    )
