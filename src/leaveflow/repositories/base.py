"""Base repository with common CRUD operations.

Provides a generic async repository pattern for SQLAlchemy models.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Generic async repository with common CRUD operations.

    Example:
        repo = DelegationRepository(session)
        delegation = await repo.get_by_id("DLG-1A2B3C4D5E6F", for_update=True)
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with async session.

        @param session - SQLAlchemy async session
        """
        self.session = session

    async def get_by_id(self, id: Any, *, for_update: bool = False) -> ModelType | None:
        """Get record by primary key.

        @param id - Primary key value
        @param for_update - Lock the row until the transaction ends
        @returns Model instance or None if not found
        """
        if not for_update:
            return await self.session.get(self.model, id)
        return await self.session.get(self.model, id, with_for_update=True)

    async def create(self, obj_in: dict[str, Any] | ModelType) -> ModelType:
        """Create new record.

        @param obj_in - Dictionary or model instance with data
        @returns Created model instance
        """
        if isinstance(obj_in, dict):
            db_obj = self.model(**obj_in)
        else:
            db_obj = obj_in
        self.session.add(db_obj)
        await self.session.flush()
        await self.session.refresh(db_obj)
        return db_obj
