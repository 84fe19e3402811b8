"""Database infrastructure module."""

from leaveflow.infrastructure.database.session import (
    AsyncSessionLocal,
    async_engine,
    get_async_db,
)

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
    "get_async_db",
]
