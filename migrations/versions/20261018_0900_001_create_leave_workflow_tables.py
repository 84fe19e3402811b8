"""Create leave workflow tables

Revision ID: 001
Revises: None
Create Date: 2026-10-18 09:00:00.000000

Creates the following tables:
- staff_profiles: Staff position and reporting lines (fed by HR)
- role_assignments: Nominal approver role holders
- acting_appointments: Time-bounded acting role holders
- leave_requests: Leave requests and their derived status
- approval_steps: One row per approval level of a request
- approval_delegations: Temporary hand-over of approval authority
- audit_logs: Workflow audit trail
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ========================================
    # 1. staff_profiles table
    # ========================================
    op.create_table(
        "staff_profiles",
        sa.Column("staff_id", sa.String(50), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("position", sa.String(200), nullable=True),
        sa.Column("grade", sa.String(50), nullable=True),
        # Organisation
        sa.Column("duty_station", sa.String(100), nullable=True),
        sa.Column("directorate", sa.String(150), nullable=True),
        sa.Column("division", sa.String(150), nullable=True),
        sa.Column("unit", sa.String(150), nullable=True),
        # Reporting lines
        sa.Column("manager_id", sa.String(50), nullable=True),
        sa.Column("immediate_supervisor_id", sa.String(50), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default="true"),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("staff_id"),
    )
    op.create_index("ix_staff_profiles_directorate", "staff_profiles", ["directorate"])
    op.create_index("ix_staff_profiles_unit", "staff_profiles", ["unit"])

    # ========================================
    # 2. role_assignments table
    # ========================================
    op.create_table(
        "role_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("staff_id", sa.String(50), nullable=False),
        sa.Column("role", sa.String(40), nullable=False),
        sa.Column("unit", sa.String(150), nullable=True),
        sa.Column("directorate", sa.String(150), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["staff_id"], ["staff_profiles.staff_id"], name="fk_role_assignments_staff"),
    )
    op.create_index("ix_role_assignments_staff_id", "role_assignments", ["staff_id"])
    op.create_index("idx_role_scope", "role_assignments", ["role", "unit", "directorate"])

    # ========================================
    # 3. acting_appointments table
    # ========================================
    op.create_table(
        "acting_appointments",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("role", sa.String(40), nullable=False),
        sa.Column("staff_id", sa.String(50), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("authority_source", sa.String(200), nullable=True),
        sa.Column("unit", sa.String(150), nullable=True),
        sa.Column("directorate", sa.String(150), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_acting_role_dates", "acting_appointments", ["role", "effective_date", "end_date"])

    # ========================================
    # 4. leave_requests table
    # ========================================
    op.create_table(
        "leave_requests",
        sa.Column("id", sa.String(50), nullable=False),
        # Request info
        sa.Column("staff_id", sa.String(50), nullable=False),
        sa.Column("leave_type", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("day_count", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        # Status
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("hr_validated", sa.Boolean(), nullable=True),
        # Resubmission
        sa.Column("resubmitted_from_id", sa.String(50), nullable=True),
        sa.Column("resubmission_count", sa.Integer(), nullable=False, server_default="0"),
        # External clearance
        sa.Column("requires_external_clearance", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("external_clearance_status", sa.String(20), nullable=True),
        sa.Column("psc_reference", sa.String(100), nullable=True),
        sa.Column("ohcs_reference", sa.String(100), nullable=True),
        sa.Column("external_clearance_date", sa.DateTime(timezone=True), nullable=True),
        # Bookkeeping
        sa.Column("idempotency_key", sa.String(100), nullable=True),
        sa.Column("override_reason", sa.Text(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["resubmitted_from_id"], ["leave_requests.id"], name="fk_leave_requests_resubmitted_from"),
        sa.UniqueConstraint("idempotency_key", name="uq_leave_idempotency_key"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="leave_status"
        ),
        sa.CheckConstraint(
            "external_clearance_status IN ('PENDING', 'CLEARED', 'REJECTED') OR external_clearance_status IS NULL",
            name="leave_clearance_status"
        ),
        sa.CheckConstraint("resubmission_count >= 0", name="leave_resubmission_count"),
    )
    op.create_index("ix_leave_requests_staff_id", "leave_requests", ["staff_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])

    # ========================================
    # 5. approval_steps table
    # ========================================
    op.create_table(
        "approval_steps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("request_id", sa.String(50), nullable=False),
        # Level
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("approver_role", sa.String(40), nullable=False),
        sa.Column("approver_id", sa.String(50), nullable=False),
        sa.Column("approver_name", sa.String(200), nullable=True),
        sa.Column("resolution_source", sa.String(20), nullable=False, server_default="NOMINAL"),
        sa.Column("original_approver_id", sa.String(50), nullable=True),
        sa.Column("activated_at", sa.DateTime(timezone=True), nullable=True),
        # Decision
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("approval_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("decided_by", sa.String(50), nullable=True),
        sa.Column("auto_approved", sa.Boolean(), nullable=False, server_default="false"),
        # Escalation
        sa.Column("escalated", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("escalated_to", sa.String(50), nullable=True),
        sa.Column("escalated_to_name", sa.String(200), nullable=True),
        sa.Column("escalation_date", sa.DateTime(timezone=True), nullable=True),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["request_id"], ["leave_requests.id"], name="fk_approval_steps_request"),
        sa.UniqueConstraint("request_id", "level", name="uq_step_level"),
        sa.CheckConstraint("level >= 1", name="step_level_positive"),
        sa.CheckConstraint("status IN ('PENDING', 'APPROVED', 'REJECTED')", name="step_status"),
    )
    op.create_index("ix_approval_steps_request_id", "approval_steps", ["request_id"])
    op.create_index("ix_approval_steps_approver_id", "approval_steps", ["approver_id"])
    op.create_index("idx_step_approver_status", "approval_steps", ["approver_id", "status"])

    # ========================================
    # 6. approval_delegations table
    # ========================================
    op.create_table(
        "approval_delegations",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("delegator_id", sa.String(50), nullable=False),
        sa.Column("delegatee_id", sa.String(50), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("leave_types", ARRAY(sa.String), nullable=False, server_default="{}"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("delegator_id <> delegatee_id", name="delegation_parties"),
        sa.CheckConstraint("end_date >= start_date", name="delegation_dates"),
        sa.CheckConstraint("status IN ('ACTIVE', 'EXPIRED', 'REVOKED')", name="delegation_status"),
    )
    op.create_index("idx_delegation_delegator_status", "approval_delegations", ["delegator_id", "status"])

    # ========================================
    # 7. audit_logs table
    # ========================================
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("subject_id", sa.String(100), nullable=False),
        sa.Column("actor_id", sa.String(50), nullable=True),
        sa.Column("details", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_subject_id", "audit_logs", ["subject_id"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    # Drop tables in reverse order (respecting foreign key dependencies)
    op.drop_table("audit_logs")
    op.drop_table("approval_delegations")
    op.drop_table("approval_steps")
    op.drop_table("leave_requests")
    op.drop_table("acting_appointments")
    op.drop_table("role_assignments")
    op.drop_table("staff_profiles")
