"""
Batch processor: the process-next-item driver.

Each call is an independent unit of work against one job. It selects the
next eligible item (pending, then stale processing, then retryable
failed), claims it with a compare-and-swap update, executes it through
the selected execution strategy, records the outcome, and reports
whether more work remains. Completion is declared only after counting
zero pending and processing items.

Dependencies: sqlalchemy, prospect_batch.boundary.db, prospect_batch.core.batch_processing
System role: Scheduler for resumable batch prospect research
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.application.adapters.completion_notifier import (
    CompletionNotifier,
    JobCompletionSummary,
)
from prospect_batch.boundary.db.base import utc_now
from prospect_batch.boundary.db.CRUD import batch_item_crud, batch_job_crud
from prospect_batch.boundary.db.models import (
    RUNNABLE_JOB_STATUSES,
    BatchItemModel,
    BatchItemStatus,
    BatchJobModel,
    BatchJobStatus,
)
from prospect_batch.configs import Settings, get_settings
from prospect_batch.core.batch_processing.execution import (
    ExecutionContext,
    ExecutionOutcome,
    ExecutionStrategy,
    WorkflowRunner,
    select_execution_strategy,
)
from prospect_batch.core.batch_processing.prospect import merge_item_input
from prospect_batch.core.batch_processing.research import ResearchPipeline
from prospect_batch.core.batch_processing.retry_policy import stale_cutoff
from prospect_batch.core.exceptions import BatchJobNotFoundError, CompletionCheckError

logger = logging.getLogger(__name__)

CLAIM_LOST_MESSAGE = "Item was claimed by another worker, try again"
UNFETCHABLE_MESSAGE = "Items remain but none could be fetched right now, try again"


@dataclass
class ProcessNextResult:
    """Outcome of one process-next call."""

    job_status: BatchJobStatus
    completed: int
    total: int
    failed: int
    has_more: bool
    message: str
    item: BatchItemModel | None = None
    strategy: str | None = None


def build_item_context(
    job: BatchJobModel,
    item: BatchItemModel,
    user_id: str,
    claimed_at: datetime | None = None,
) -> ExecutionContext:
    """
    Build the execution context for a claimed item.

    The structured input is reconciled with the denormalized columns and
    normalized before any strategy sees it. ``claimed_at`` defaults to the
    item's processing_started_at.
    """
    prospect = merge_item_input(
        item.input_data,
        item.prospect_address,
        item.prospect_city,
        item.prospect_state,
        item.prospect_zip,
    )
    if not prospect.name and item.prospect_name:
        prospect.name = item.prospect_name

    return ExecutionContext(
        job_id=job.id,
        item_id=item.id,
        user_id=user_id,
        prospect=prospect,
        options=dict(job.settings or {}),
        claimed_at=claimed_at or item.processing_started_at,
    )


class BatchProcessor:
    """Drives one batch job forward by one item per call."""

    def __init__(
        self,
        db: AsyncSession,
        pipeline: ResearchPipeline,
        notifier: CompletionNotifier,
        workflow_runner: WorkflowRunner | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize processor.

        Args:
            db: Async SQLAlchemy session
            pipeline: Research pipeline for inline execution
            notifier: Completion notifier (fire-and-forget)
            workflow_runner: Durable workflow runner (None disables durable execution)
            settings: Application settings (defaults to get_settings())
        """
        self.db = db
        self.pipeline = pipeline
        self.notifier = notifier
        self.workflow_runner = workflow_runner
        self.settings = settings or get_settings()

    @property
    def max_retries(self) -> int:
        return self.settings.batch.max_retries_per_prospect

    def _select_strategy(self, user_id: str) -> ExecutionStrategy:
        return select_execution_strategy(
            user_id,
            pipeline=self.pipeline,
            timeout_seconds=self.settings.batch.prospect_processing_timeout_ms / 1000,
            workflow_settings=self.settings.workflow,
            runner=self.workflow_runner,
        )

    async def process_next(self, job_id: UUID, user_id: str) -> ProcessNextResult:
        """
        Process the next eligible item of a job.

        Args:
            job_id: Job UUID
            user_id: Caller identity

        Returns:
            ProcessNextResult: Item processed (if any), job status, progress, has_more

        Raises:
            BatchJobNotFoundError: If the job does not exist for this user
            CompletionCheckError: If remaining work could not be counted
            SQLAlchemyError: If the store is unavailable
        """
        job = await batch_job_crud.get_for_user(self.db, job_id, user_id)
        if job is None:
            raise BatchJobNotFoundError(str(job_id))

        if job.status not in RUNNABLE_JOB_STATUSES:
            return self._result(job, has_more=False, message=f"Job is {job.status.value}, not processing")

        now = utc_now()
        if job.status == BatchJobStatus.PENDING:
            if await batch_job_crud.mark_processing(self.db, job_id, now):
                logger.info("Batch job started", extra={"job_id": str(job_id), "user_id": user_id})
            await self.db.commit()
            await self.db.refresh(job)

        item = await self._select_next_item(job_id, user_id, now)
        if item is None:
            return await self._finish_or_wait(job, user_id)

        observed_status = item.status
        claimed = await batch_item_crud.claim(
            self.db,
            item.id,
            observed_status=observed_status,
            started_at=now,
            max_retries=self.max_retries,
            stale_cutoff=self._stale_cutoff(now) if observed_status == BatchItemStatus.PROCESSING else None,
        )
        await self.db.commit()

        if claimed is None:
            logger.info(
                "Item claim lost",
                extra={"job_id": str(job_id), "item_id": str(item.id), "observed_status": observed_status.value},
            )
            return self._result(job, has_more=True, message=CLAIM_LOST_MESSAGE)

        await self.db.refresh(claimed)

        logger.info(
            "Item claimed",
            extra={
                "job_id": str(job_id),
                "item_id": str(claimed.id),
                "item_index": claimed.item_index,
                "observed_status": observed_status.value,
                "retry_count": claimed.retry_count,
            },
        )

        outcome = await self._execute(job, claimed, user_id, claimed_at=now)

        await self.db.refresh(claimed)
        await self.db.refresh(job)

        pending = await batch_item_crud.count_pending(self.db, job_id)
        retryable = await batch_item_crud.count_retryable(self.db, job_id, self.max_retries)
        has_more = pending + retryable > 0
        if not has_more:
            await self._finalize_if_done(job, user_id)

        message = (
            f"Processed {claimed.prospect_name or 'prospect'}"
            if outcome.success
            else f"Failed to process {claimed.prospect_name or 'prospect'}: {outcome.error_message}"
        )
        return self._result(
            job,
            has_more=has_more,
            message=message,
            item=claimed,
            strategy=outcome.strategy,
        )

    def _stale_cutoff(self, now: datetime) -> datetime:
        return stale_cutoff(now, self.settings.batch.stale_item_threshold_ms)

    async def _select_next_item(
        self,
        job_id: UUID,
        user_id: str,
        now: datetime,
    ) -> BatchItemModel | None:
        item = await batch_item_crud.get_next_pending(self.db, job_id, user_id)
        if item is not None:
            return item

        item = await batch_item_crud.get_next_stale(self.db, job_id, user_id, self._stale_cutoff(now))
        if item is not None:
            logger.warning(
                "Reclaiming stale item",
                extra={"job_id": str(job_id), "item_id": str(item.id), "item_index": item.item_index},
            )
            return item

        return await batch_item_crud.get_next_retryable(self.db, job_id, user_id, self.max_retries)

    async def _execute(
        self,
        job: BatchJobModel,
        item: BatchItemModel,
        user_id: str,
        claimed_at: datetime,
    ) -> ExecutionOutcome:
        context = build_item_context(job, item, user_id, claimed_at)
        strategy = self._select_strategy(user_id)
        return await strategy.execute(self.db, context)

    async def _finish_or_wait(self, job: BatchJobModel, user_id: str) -> ProcessNextResult:
        if not await self._finalize_if_done(job, user_id):
            return self._result(job, has_more=True, message=UNFETCHABLE_MESSAGE)
        return self._result(job, has_more=False, message="All prospects have been processed")

    async def _finalize_if_done(self, job: BatchJobModel, user_id: str) -> bool:
        """
        Complete the job once no pending or processing items remain.

        The notification fires only for the caller whose conditional
        update moved the job to completed.

        Returns:
            True if no unfinished work remains

        Raises:
            CompletionCheckError: If the remaining items could not be counted
        """
        try:
            unfinished = await batch_item_crud.count_unfinished(self.db, job.id)
        except SQLAlchemyError as exc:
            raise CompletionCheckError(
                "Could not count remaining items",
                details={"job_id": str(job.id), "error": str(exc)},
            ) from exc

        if unfinished > 0:
            return False

        await batch_job_crud.refresh_counts(self.db, job.id)
        completed_job = await batch_job_crud.finalize_completed(self.db, job.id, utc_now())
        await self.db.commit()
        await self.db.refresh(job)

        if completed_job is not None:
            logger.info(
                "Batch job completed",
                extra={
                    "job_id": str(job.id),
                    "completed_count": job.completed_count,
                    "failed_count": job.failed_count,
                },
            )
            await self.notifier.notify(
                JobCompletionSummary(
                    job_id=job.id,
                    user_id=user_id,
                    job_name=job.name,
                    total_prospects=job.total_prospects,
                    completed_count=job.completed_count,
                    failed_count=job.failed_count,
                    skipped_count=job.skipped_count,
                    completed_at=job.completed_at,
                    recipient=(job.settings or {}).get("notification_email"),
                )
            )

        return True

    @staticmethod
    def _result(
        job: BatchJobModel,
        has_more: bool,
        message: str,
        item: BatchItemModel | None = None,
        strategy: str | None = None,
    ) -> ProcessNextResult:
        return ProcessNextResult(
            job_status=job.status,
            completed=job.completed_count,
            total=job.total_prospects,
            failed=job.failed_count,
            has_more=has_more,
            message=message,
            item=item,
            strategy=strategy,
        )
