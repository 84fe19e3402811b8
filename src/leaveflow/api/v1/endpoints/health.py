"""Health API endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leaveflow.infrastructure.database import get_async_db

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/health", tags=["Health"])


@router.get("/live")
async def liveness_check() -> dict[str, Any]:
    """Kubernetes liveness probe endpoint.

    Returns:
        Simple alive status
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check(
    db: Annotated[AsyncSession, Depends(get_async_db)],
) -> dict[str, Any]:
    """Kubernetes readiness probe endpoint.

    Returns:
        Ready status once the database answers
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        raise HTTPException(503, "Service not ready") from e

    return {"status": "ready", "database": "ok"}
