"""Staff organisation profile and role assignment models."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from leaveflow.models.base import Base, TimestampMixin


class StaffProfile(Base, TimestampMixin):
    """Staff position attributes, maintained by the HR system."""

    __tablename__ = "staff_profiles"

    # Primary key
    staff_id: Mapped[str] = mapped_column(String(50), primary_key=True)

    display_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    grade: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Organisation
    duty_station: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    directorate: Mapped[Optional[str]] = mapped_column(
        String(150), nullable=True, index=True
    )
    division: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    unit: Mapped[Optional[str]] = mapped_column(String(150), nullable=True, index=True)

    # Reporting lines
    manager_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    immediate_supervisor_id: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True
    )

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class RoleAssignment(Base):
    """Nominal holder of an approver role, optionally scoped to a unit or directorate."""

    __tablename__ = "role_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    staff_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("staff_profiles.staff_id"), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(String(40), nullable=False)
    unit: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    directorate: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    __table_args__ = (Index("idx_role_scope", "role", "unit", "directorate"),)
