"""Schemas for delegation management."""

from datetime import date

from pydantic import BaseModel, Field


class DelegationCreate(BaseModel):
    """Request to hand approval authority to someone else for a period."""

    delegatee_id: str = Field(..., min_length=1, description="Person receiving authority")
    start_date: date = Field(..., description="First day of the delegation")
    end_date: date = Field(..., description="Last day of the delegation")
    leave_types: list[str] = Field(
        default_factory=list, description="Leave types in scope, all if empty"
    )
    notes: str | None = Field(None, max_length=1000, description="Notes")


class DelegationRevoke(BaseModel):
    reason: str | None = Field(None, max_length=1000, description="Why it was revoked")
