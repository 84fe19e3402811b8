"""Celery application configuration.

Provides task queue infrastructure with Redis broker for:
- Escalation sweeps over pending approval steps (high priority)
- Delegation housekeeping (normal priority)
"""

from celery import Celery
from kombu import Exchange, Queue

from leaveflow.core.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "leaveflow",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "leaveflow.tasks.escalation_tasks",
    ],
)

# Define exchanges
default_exchange = Exchange("default", type="direct")
priority_exchange = Exchange("priority", type="direct")

# Priority: high (5) > normal (0) > low (-5)
celery_app.conf.task_queues = (
    Queue(
        "high",
        exchange=priority_exchange,
        routing_key="high",
        queue_arguments={"x-max-priority": 5},
    ),
    Queue(
        "normal",
        exchange=default_exchange,
        routing_key="normal",
        queue_arguments={"x-max-priority": 0},
    ),
    Queue(
        "low",
        exchange=default_exchange,
        routing_key="low",
        queue_arguments={"x-max-priority": -5},
    ),
)

# Default queue
celery_app.conf.task_default_queue = "normal"
celery_app.conf.task_default_exchange = "default"
celery_app.conf.task_default_routing_key = "normal"

celery_app.conf.task_routes = {
    "leaveflow.tasks.escalation_tasks.sweep_escalations": {"queue": "high"},
    "leaveflow.tasks.escalation_tasks.expire_delegations": {"queue": "normal"},
}

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,

    # Result backend
    result_expires=86400,
    result_extended=True,

    # Worker configuration
    worker_prefetch_multiplier=4,
    worker_max_tasks_per_child=1000,

    # Retry configuration
    task_default_retry_delay=60,
    task_max_retries=3,

    # Logging
    worker_hijack_root_logger=False,

    # Broker settings
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=10,
    broker_pool_limit=10,

    # Beat scheduler
    beat_scheduler="celery.beat:PersistentScheduler",
    beat_schedule_filename=".celery-beat-schedule",
)

# Celery Beat schedule (periodic tasks)
celery_app.conf.beat_schedule = {
    "sweep-escalations": {
        "task": "leaveflow.tasks.escalation_tasks.sweep_escalations",
        "schedule": float(settings.escalation_sweep_interval_seconds),
        "options": {"queue": "high"},
    },
    "expire-delegations": {
        "task": "leaveflow.tasks.escalation_tasks.expire_delegations",
        "schedule": float(settings.delegation_expiry_interval_seconds),
        "options": {"queue": "normal"},
    },
}
