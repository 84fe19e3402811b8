"""Approval delegation and acting appointment models."""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import ARRAY, CheckConstraint, Date, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from leaveflow.models.base import Base, TimestampMixin


class DelegationRecord(Base, TimestampMixin):
    """Approval delegation table."""

    __tablename__ = "approval_delegations"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    delegator_id: Mapped[str] = mapped_column(String(50), nullable=False)
    delegatee_id: Mapped[str] = mapped_column(String(50), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    leave_types: Mapped[list[str]] = mapped_column(
        ARRAY(String), default=list, nullable=False
    )
    status: Mapped[str] = mapped_column(String(20), default="ACTIVE", nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index("idx_delegation_delegator_status", "delegator_id", "status"),
        CheckConstraint("delegator_id <> delegatee_id", name="delegation_parties"),
        CheckConstraint("end_date >= start_date", name="delegation_dates"),
        CheckConstraint(
            "status IN ('ACTIVE', 'EXPIRED', 'REVOKED')", name="delegation_status"
        ),
    )


class ActingAppointmentRecord(Base, TimestampMixin):
    """Acting appointment table, maintained by HR."""

    __tablename__ = "acting_appointments"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    role: Mapped[str] = mapped_column(String(40), nullable=False)
    staff_id: Mapped[str] = mapped_column(String(50), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    authority_source: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    directorate: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    __table_args__ = (Index("idx_acting_role_dates", "role", "effective_date", "end_date"),)
