"""Repository for leave request operations."""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from leaveflow.models.leave import LeaveRequestRecord
from leaveflow.repositories.base import BaseRepository


class LeaveRequestRepository(BaseRepository[LeaveRequestRecord]):
    """Repository for LeaveRequestRecord database operations.

    Handles leave workflow queries including:
    - Loading a request with its steps, optionally under a row lock
    - Idempotency key lookups
    - Pending request listing for the escalation sweep
    """

    model = LeaveRequestRecord

    async def get_with_steps(
        self, request_id: str, *, for_update: bool = False
    ) -> LeaveRequestRecord | None:
        """Get request with all approval steps loaded.

        @param request_id - Request ID
        @param for_update - Lock the request row (SELECT ... FOR UPDATE)
        @returns LeaveRequestRecord with steps or None
        """
        stmt = (
            select(self.model)
            .options(selectinload(self.model.steps))
            .where(self.model.id == request_id)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_idempotency_key(self, key: str) -> LeaveRequestRecord | None:
        """Get request created with an idempotency key.

        @param key - Client-supplied idempotency key
        @returns LeaveRequestRecord or None
        """
        stmt = (
            select(self.model)
            .options(selectinload(self.model.steps))
            .where(self.model.idempotency_key == key)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_pending_ids(self, *, limit: int = 1000) -> Sequence[str]:
        """Get IDs of pending requests, oldest first.

        @param limit - Maximum results
        @returns List of request IDs
        """
        stmt = (
            select(self.model.id)
            .where(self.model.status == "PENDING")
            .order_by(self.model.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()

