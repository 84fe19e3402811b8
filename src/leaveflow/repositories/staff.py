"""Repositories for organisation read models."""

from datetime import date
from typing import Sequence

from sqlalchemy import and_, or_, select

from leaveflow.models.delegation import ActingAppointmentRecord
from leaveflow.models.staff import RoleAssignment, StaffProfile
from leaveflow.repositories.base import BaseRepository


class StaffProfileRepository(BaseRepository[StaffProfile]):
    """Repository for StaffProfile lookups."""

    model = StaffProfile


class RoleAssignmentRepository(BaseRepository[RoleAssignment]):
    """Repository for nominal role holders."""

    model = RoleAssignment

    async def get_roles_for(self, staff_id: str) -> Sequence[str]:
        """Get roles held by a staff member.

        @param staff_id - Staff ID
        @returns List of role names
        """
        stmt = select(self.model.role).where(self.model.staff_id == staff_id)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_holders(
        self,
        role: str,
        *,
        unit: str | None = None,
        directorate: str | None = None,
    ) -> Sequence[str]:
        """Get active holders of a role within an optional scope.

        @param role - Role name
        @param unit - Unit scope
        @param directorate - Directorate scope
        @returns Staff IDs ordered by assignment
        """
        stmt = (
            select(self.model.staff_id)
            .join(StaffProfile, StaffProfile.staff_id == self.model.staff_id)
            .where(self.model.role == role, StaffProfile.active.is_(True))
        )
        if unit is not None:
            stmt = stmt.where(self.model.unit == unit)
        if directorate is not None:
            stmt = stmt.where(self.model.directorate == directorate)
        stmt = stmt.order_by(self.model.id)
        result = await self.session.execute(stmt)
        return result.scalars().all()


class ActingAppointmentRepository(BaseRepository[ActingAppointmentRecord]):
    """Repository for acting appointments."""

    model = ActingAppointmentRecord

    async def get_active(self, role: str, on: date) -> Sequence[ActingAppointmentRecord]:
        """Get appointments to a role in force on a day.

        @param role - Role name
        @param on - Day to check
        @returns Appointments, latest effective date first
        """
        stmt = (
            select(self.model)
            .where(
                and_(
                    self.model.role == role,
                    self.model.effective_date <= on,
                    or_(self.model.end_date.is_(None), self.model.end_date >= on),
                )
            )
            .order_by(self.model.effective_date.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
