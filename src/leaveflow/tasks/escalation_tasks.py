"""Periodic workflow maintenance tasks.

- Escalation sweep over the current step of every pending leave request
- Expiry of delegations whose end date has passed
"""

from typing import Any

from leaveflow.services.delegation import get_delegation_service
from leaveflow.services.workflow import get_leave_approval_engine
from leaveflow.tasks.base import async_task, get_task_logger

logger = get_task_logger("escalation_tasks")


@async_task(queue="high")
async def sweep_escalations(self) -> dict[str, Any]:
    """Escalate or auto-approve steps that breached their escalation policy.

    Scheduled task; retried on storage failures.

    @returns Sweep summary
    """
    logger.info("Running escalation sweep")

    try:
        outcomes = await get_leave_approval_engine().sweep_escalations()
    except Exception:
        logger.exception("Escalation sweep failed")
        raise

    return {
        "status": "success",
        "escalated": sum(1 for o in outcomes if o.action == "ESCALATED"),
        "auto_approved": sum(1 for o in outcomes if o.action == "AUTO_APPROVED"),
        "requests": [o.request_id for o in outcomes],
    }


@async_task(queue="normal")
async def expire_delegations(self) -> dict[str, Any]:
    """Mark elapsed delegations as expired.

    @returns Expiry summary
    """
    logger.info("Expiring elapsed delegations")

    try:
        expired = await get_delegation_service().expire_elapsed_delegations()
    except Exception:
        logger.exception("Delegation expiry failed")
        raise

    return {"status": "success", "expired": len(expired), "delegations": expired}
