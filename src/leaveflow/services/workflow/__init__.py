"""Leave approval workflow.

Workflow determination, approver resolution, the approval state machine,
escalation, external clearance and resubmission, composed by
``LeaveApprovalEngine`` over a record store.
"""

from leaveflow.services.workflow.clearance import ExternalClearanceGate
from leaveflow.services.workflow.determination import WorkflowDeterminer
from leaveflow.services.workflow.engine import (
    LeaveApprovalEngine,
    get_leave_approval_engine,
    reset_leave_approval_engine,
)
from leaveflow.services.workflow.escalation import (
    EscalationAction,
    EscalationDecision,
    EscalationPolicyEvaluator,
    add_working_days,
)
from leaveflow.services.workflow.memory_store import InMemoryRecordStore
from leaveflow.services.workflow.org import OrganizationResolver
from leaveflow.services.workflow.resolver import ApproverResolver
from leaveflow.services.workflow.resubmission import ResubmissionController
from leaveflow.services.workflow.schemas import (
    ActingAppointment,
    ApprovalDelegation,
    ApprovalStep,
    ApproverRole,
    Decision,
    DecisionResult,
    DelegationStatus,
    EscalationOutcome,
    EscalationPolicy,
    ExternalClearanceStatus,
    LeaveRequest,
    LeaveStatus,
    LeaveSubmission,
    OrgRoutingConfig,
    OverrideAction,
    ResolutionSource,
    ResubmissionResult,
    StaffOrgProfile,
    StepStatus,
    SubmissionResult,
    UnitRouting,
    WorkflowPlan,
)

__all__ = [
    # Engine
    "LeaveApprovalEngine",
    "get_leave_approval_engine",
    "reset_leave_approval_engine",
    "InMemoryRecordStore",
    # Components
    "ApproverResolver",
    "EscalationAction",
    "EscalationDecision",
    "EscalationPolicyEvaluator",
    "ExternalClearanceGate",
    "OrganizationResolver",
    "ResubmissionController",
    "WorkflowDeterminer",
    "add_working_days",
    # Schemas
    "ActingAppointment",
    "ApprovalDelegation",
    "ApprovalStep",
    "ApproverRole",
    "Decision",
    "DecisionResult",
    "DelegationStatus",
    "EscalationOutcome",
    "EscalationPolicy",
    "ExternalClearanceStatus",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveSubmission",
    "OrgRoutingConfig",
    "OverrideAction",
    "ResolutionSource",
    "ResubmissionResult",
    "StaffOrgProfile",
    "StepStatus",
    "SubmissionResult",
    "UnitRouting",
    "WorkflowPlan",
]
