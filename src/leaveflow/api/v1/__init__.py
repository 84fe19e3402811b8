"""API v1 module."""

from fastapi import APIRouter

from leaveflow.api.v1.endpoints import delegations, health, leaves

api_router = APIRouter()

# Include routers
api_router.include_router(leaves.router)
api_router.include_router(delegations.router)
api_router.include_router(health.router)
