"""
Batch job CRUD operations.

Owner-scoped reads plus the conditional status transitions the scheduler
relies on: pending to processing, and the single-winner finalize to
completed.

Dependencies: sqlalchemy, prospect_batch.boundary.db.models
System role: Job aggregate persistence for batch prospect research
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.boundary.db.CRUD.base_crud import BaseCRUD
from prospect_batch.boundary.db.CRUD.batch_item_crud import batch_item_crud
from prospect_batch.boundary.db.models.batch_item_model import BatchItemModel, BatchItemStatus
from prospect_batch.boundary.db.models.batch_job_model import (
    ACTIVE_JOB_STATUSES,
    RUNNABLE_JOB_STATUSES,
    BatchJobModel,
    BatchJobStatus,
)


class BatchJobCRUD(BaseCRUD[BatchJobModel]):
    """CRUD operations for BatchJobModel."""

    def __init__(self) -> None:
        super().__init__(BatchJobModel)

    async def get_for_user(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
    ) -> BatchJobModel | None:
        """
        Retrieve a job owned by the given user.

        Args:
            session: Async database session
            job_id: Job UUID
            user_id: Caller identity

        Returns:
            BatchJobModel if it exists and belongs to user_id, None otherwise
        """
        stmt = select(BatchJobModel).where(
            BatchJobModel.id == job_id,
            BatchJobModel.user_id == user_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        session: AsyncSession,
        user_id: str,
        status: BatchJobStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[Sequence[BatchJobModel], int]:
        """
        List a user's jobs, newest first.

        Args:
            session: Async database session
            user_id: Caller identity
            status: Optional status filter
            limit: Page size
            offset: Rows to skip

        Returns:
            tuple: (jobs on this page, total matching jobs)
        """
        filters = [BatchJobModel.user_id == user_id]
        if status is not None:
            filters.append(BatchJobModel.status == status)

        stmt = (
            select(BatchJobModel)
            .where(*filters)
            .order_by(BatchJobModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(BatchJobModel).where(*filters)

        jobs = (await session.execute(stmt)).scalars().all()
        total = (await session.execute(count_stmt)).scalar_one()
        return jobs, total

    async def count_active(self, session: AsyncSession, user_id: str) -> int:
        """Count the user's pending, processing and paused jobs."""
        return await self.count_where(
            session,
            BatchJobModel.user_id == user_id,
            BatchJobModel.status.in_(list(ACTIVE_JOB_STATUSES)),
        )

    async def mark_processing(
        self,
        session: AsyncSession,
        job_id: UUID,
        started_at: datetime,
    ) -> bool:
        """
        Move a pending job to processing.

        Conditional on the job still being pending, so concurrent first
        calls set started_at once.

        Returns:
            True if this call performed the transition
        """
        started = await self.guarded_update(
            session,
            BatchJobModel.id == job_id,
            BatchJobModel.status == BatchJobStatus.PENDING,
            values={"status": BatchJobStatus.PROCESSING, "started_at": started_at},
        )
        return started is not None

    async def finalize_completed(
        self,
        session: AsyncSession,
        job_id: UUID,
        completed_at: datetime,
    ) -> BatchJobModel | None:
        """
        Mark a runnable job completed.

        Only one concurrent caller gets a row back; the others see None and
        must not fire completion side effects.

        Returns:
            The completed job for the winning caller, None otherwise
        """
        return await self.guarded_update(
            session,
            BatchJobModel.id == job_id,
            BatchJobModel.status.in_(list(RUNNABLE_JOB_STATUSES)),
            values={"status": BatchJobStatus.COMPLETED, "completed_at": completed_at},
        )

    async def refresh_counts(self, session: AsyncSession, job_id: UUID) -> None:
        """
        Recompute completed/failed counters from the item rows.

        Args:
            session: Async database session
            job_id: Job UUID
        """
        counts = await batch_item_crud.count_by_status(session, job_id)

        await session.execute(
            update(BatchJobModel)
            .where(BatchJobModel.id == job_id)
            .values(
                completed_count=counts[BatchItemStatus.COMPLETED],
                failed_count=counts[BatchItemStatus.FAILED],
            )
        )

    async def update_status(
        self,
        session: AsyncSession,
        job_id: UUID,
        status: BatchJobStatus,
        from_status: BatchJobStatus | None = None,
        **fields,
    ) -> BatchJobModel | None:
        """
        Set a job's status along with any extra columns.

        Args:
            session: Async database session
            job_id: Job UUID
            status: New status
            from_status: Status the caller observed; the write is skipped
                if the job has moved on since
            **fields: Extra columns to set

        Returns:
            Updated BatchJobModel, or None if not found or no longer in
            from_status
        """
        criteria = [BatchJobModel.id == job_id]
        if from_status is not None:
            criteria.append(BatchJobModel.status == from_status)
        return await self.guarded_update(
            session,
            *criteria,
            values={"status": status, **fields},
        )

    async def reset_to_pending(
        self,
        session: AsyncSession,
        job_id: UUID,
        from_status: BatchJobStatus,
    ) -> BatchJobModel | None:
        """Return a job still in from_status to pending with its run timestamps cleared."""
        return await self.update_status(
            session,
            job_id,
            BatchJobStatus.PENDING,
            from_status=from_status,
            started_at=None,
            completed_at=None,
            error_message=None,
        )

    async def delete_for_user(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
    ) -> bool:
        """
        Delete a job and its items.

        Items are removed explicitly as well as through the foreign key so
        backends without enforced cascades behave the same.

        Returns:
            True if the job existed and was deleted
        """
        await session.execute(
            delete(BatchItemModel).where(
                BatchItemModel.job_id == job_id,
                BatchItemModel.user_id == user_id,
            )
        )
        result = await session.execute(
            delete(BatchJobModel).where(
                BatchJobModel.id == job_id,
                BatchJobModel.user_id == user_id,
            )
        )
        return result.rowcount > 0


batch_job_crud = BatchJobCRUD()
