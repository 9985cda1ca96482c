"""
Batch completion notifier.

Fire-and-forget delivery of the "job completed" notification. Enqueue
failures are logged and never reach the caller.

Dependencies: celery, kombu, redis, pydantic, prospect_batch.workers
System role: Completion notification adapter
"""

import asyncio
import logging
from datetime import datetime
from typing import Protocol
from uuid import UUID

from kombu.exceptions import OperationalError as BrokerOperationalError
from pydantic import BaseModel
from redis.exceptions import RedisError

from prospect_batch.workers.tasks.notifications import send_batch_completion_email

logger = logging.getLogger(__name__)


class JobCompletionSummary(BaseModel):
    """Snapshot of a job at completion."""

    job_id: UUID
    user_id: str
    job_name: str
    total_prospects: int
    completed_count: int
    failed_count: int
    skipped_count: int = 0
    completed_at: datetime | None = None
    recipient: str | None = None


class CompletionNotifier(Protocol):
    async def notify(self, summary: JobCompletionSummary) -> None:
        ...


class CeleryCompletionNotifier:
    """Enqueues send_batch_completion_email."""

    async def notify(self, summary: JobCompletionSummary) -> None:
        try:
            await asyncio.to_thread(
                send_batch_completion_email.apply_async,
                args=[summary.model_dump(mode="json")],
                retry=False,
            )
        except (BrokerOperationalError, RedisError, OSError) as exc:
            logger.error(
                "Failed to enqueue completion notification",
                extra={"job_id": str(summary.job_id), "error": str(exc)},
            )
            return

        logger.info(
            "Completion notification enqueued",
            extra={"job_id": str(summary.job_id), "user_id": summary.user_id},
        )
