"""Celery tasks for background processing.

This module provides async task execution for:
- Escalation sweeps
- Delegation expiry
"""

from leaveflow.core.celery_app import celery_app

__all__ = ["celery_app"]
