"""Repository for approval delegations."""

from datetime import date
from typing import Sequence

from sqlalchemy import and_, select, text

from leaveflow.models.delegation import DelegationRecord
from leaveflow.repositories.base import BaseRepository


class DelegationRepository(BaseRepository[DelegationRecord]):
    """Repository for DelegationRecord database operations."""

    model = DelegationRecord

    async def get_active_for(self, delegator_id: str, on: date) -> Sequence[DelegationRecord]:
        """Get active delegations from a person in force on a day.

        @param delegator_id - Delegating person
        @param on - Day to check
        @returns Matching delegations
        """
        stmt = select(self.model).where(
            and_(
                self.model.delegator_id == delegator_id,
                self.model.status == "ACTIVE",
                self.model.start_date <= on,
                self.model.end_date >= on,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_for_delegator(
        self,
        delegator_id: str,
        *,
        status: str | None = None,
        lock: bool = False,
    ) -> Sequence[DelegationRecord]:
        """Get delegations created by a person.

        @param delegator_id - Delegating person
        @param status - Optional status filter
        @param lock - Serialise with other writers for this delegator
        @returns Delegations ordered by start date
        """
        if lock:
            await self.session.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:delegator_id))"),
                {"delegator_id": delegator_id},
            )
        stmt = select(self.model).where(self.model.delegator_id == delegator_id)
        if status:
            stmt = stmt.where(self.model.status == status)
        stmt = stmt.order_by(self.model.start_date)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def get_elapsed(self, on: date) -> Sequence[DelegationRecord]:
        """Get active delegations whose end date has passed.

        @param on - Current day
        @returns Elapsed delegations
        """
        stmt = select(self.model).where(
            and_(self.model.status == "ACTIVE", self.model.end_date < on)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
