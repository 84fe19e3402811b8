"""Base task class with common functionality.

Provides a foundation for all Celery tasks with:
- Retry on retryable storage failures
- Error logging
- Async task bodies run in Celery's sync context
"""

import asyncio
import functools
import logging
from typing import Any, Callable, TypeVar

from celery import Task

from leaveflow.core.celery_app import celery_app
from leaveflow.core.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryableTask(Task):
    """Task with automatic retry when the record store is unavailable.

    Retries with exponential backoff; other errors fail the task.
    """

    abstract = True
    autoretry_for = (StorageError,)
    retry_backoff = True
    retry_backoff_max = 600  # Max 10 minutes
    retry_jitter = True
    max_retries = 3

    def on_failure(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task failure."""
        logger.error(
            "Task %s failed after %d retries",
            self.name,
            self.request.retries,
            exc_info=exc,
            extra={
                "task_id": task_id,
                "task_name": self.name,
            },
        )

    def on_retry(
        self,
        exc: Exception,
        task_id: str,
        args: tuple,
        kwargs: dict,
        einfo: Any,
    ) -> None:
        """Log task retry."""
        logger.warning(
            "Task %s retrying (attempt %d/%d)",
            self.name,
            self.request.retries + 1,
            self.max_retries,
            extra={
                "task_id": task_id,
                "task_name": self.name,
                "exception": str(exc),
            },
        )


def async_task(
    *args: Any,
    bind: bool = True,
    base: type[Task] = RetryableTask,
    **kwargs: Any,
) -> Callable:
    """Decorator for async Celery tasks.

    Wraps async functions to run in Celery's sync context.

    @param bind - Bind task instance to first argument
    @param base - Base task class to use
    @returns Decorated task function

    Example:
        @async_task(queue="high")
        async def sweep(self) -> dict:
            return {"status": "success"}
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @celery_app.task(*args, bind=bind, base=base, **kwargs)
        @functools.wraps(func)
        def wrapper(*task_args: Any, **task_kwargs: Any) -> T:
            # One loop per worker process
            try:
                loop = asyncio.get_event_loop()
            except RuntimeError:
                loop = asyncio.new_event_loop()
                asyncio.set_event_loop(loop)

            return loop.run_until_complete(func(*task_args, **task_kwargs))

        return wrapper

    return decorator


def get_task_logger(task_name: str) -> logging.Logger:
    """Get logger for a specific task.

    @param task_name - Name of the task
    @returns Configured logger
    """
    return logging.getLogger(f"celery.task.{task_name}")
