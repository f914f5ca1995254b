"""
Notification dispatch - hands templated emails to a background task or the arq queue.

Dispatch is at-most-once and best-effort: a failed email never affects the
operation that triggered it.
"""

import asyncio
import logging
from typing import Any, Optional

from fastapi import BackgroundTasks

from ...config import NOTIFICATION_BACKEND
from .service import deliver_templated_email

logger = logging.getLogger(__name__)

TEMPLATED_EMAIL_TASK = "send_templated_email_task"


class NotificationDispatcher:
    """Interface consumed by the services: send(template, recipient, variables)"""

    def dispatch(
        self,
        template_name: str,
        recipient_email: str,
        variables: Optional[dict[str, Any]] = None,
    ) -> None:
        raise NotImplementedError


class BackgroundTaskDispatcher(NotificationDispatcher):
    """Runs delivery after the response has been sent"""

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def dispatch(self, template_name, recipient_email, variables=None) -> None:
        logger.info(f"📧 Queuing {template_name} email to {recipient_email}")
        self.background_tasks.add_task(
            deliver_templated_email, template_name, recipient_email, dict(variables or {})
        )


async def enqueue_templated_email(
    template_name: str, recipient_email: str, variables: dict[str, Any]
) -> Optional[str]:
    """Push one email job to Redis; failures are logged, never raised"""
    from arq import create_pool

    from ...worker import get_redis_settings

    try:
        pool = await asyncio.wait_for(create_pool(get_redis_settings()), timeout=20.0)
        try:
            job = await pool.enqueue_job(
                TEMPLATED_EMAIL_TASK, template_name, recipient_email, variables
            )
        finally:
            await pool.close()
        job_id = job.job_id if job else None
        logger.info(f"📋 {template_name} email job queued: {job_id}")
        return job_id
    except Exception as e:
        logger.warning(f"⚠️ Failed to queue {template_name} email to {recipient_email}: {e}")
        return None


class ArqDispatcher(NotificationDispatcher):
    """Enqueues delivery to the arq worker (see app.worker.WorkerSettings)"""

    def __init__(self, background_tasks: BackgroundTasks):
        self.background_tasks = background_tasks

    def dispatch(self, template_name, recipient_email, variables=None) -> None:
        self.background_tasks.add_task(
            enqueue_templated_email, template_name, recipient_email, dict(variables or {})
        )


def get_notification_dispatcher(background_tasks: BackgroundTasks) -> NotificationDispatcher:
    """Dependency injection for the configured dispatcher"""
    if NOTIFICATION_BACKEND == "arq":
        return ArqDispatcher(background_tasks)
    return BackgroundTaskDispatcher(background_tasks)
