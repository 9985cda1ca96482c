"""
Batch work item CRUD operations.

Implements the item claim protocol: candidate selection in item_index
order followed by a compare-and-swap status update. A claim succeeds only
if the row is still in the status the caller observed, which guarantees
at most one active executor per item.

Dependencies: sqlalchemy, prospect_batch.boundary.db.models
System role: Work item persistence and claim protocol
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.boundary.db.CRUD.base_crud import BaseCRUD
from prospect_batch.boundary.db.models.batch_item_model import BatchItemModel, BatchItemStatus

UNFINISHED_ITEM_STATUSES = (BatchItemStatus.PENDING, BatchItemStatus.PROCESSING)


class BatchItemCRUD(BaseCRUD[BatchItemModel]):
    """
    CRUD operations for BatchItemModel.

    Every query is scoped to the owning job (and user where the caller is
    an HTTP request).
    """

    def __init__(self) -> None:
        super().__init__(BatchItemModel)

    async def bulk_create(
        self,
        session: AsyncSession,
        rows: list[dict[str, Any]],
    ) -> list[BatchItemModel]:
        """
        Insert many items in one flush.

        Args:
            session: Async database session
            rows: Column mappings, one per item

        Returns:
            list[BatchItemModel]: Created items
        """
        items = [BatchItemModel(**row) for row in rows]
        session.add_all(items)
        await session.flush()
        return items

    async def get_for_job(
        self,
        session: AsyncSession,
        item_id: UUID,
        job_id: UUID,
        user_id: str | None = None,
    ) -> BatchItemModel | None:
        """Retrieve one item of a job, optionally scoped to its owner."""
        stmt = select(BatchItemModel).where(
            BatchItemModel.id == item_id,
            BatchItemModel.job_id == job_id,
        )
        if user_id is not None:
            stmt = stmt.where(BatchItemModel.user_id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def _first_by_index(self, session: AsyncSession, *criteria) -> BatchItemModel | None:
        stmt = (
            select(BatchItemModel)
            .where(*criteria)
            .order_by(BatchItemModel.item_index.asc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_next_pending(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
    ) -> BatchItemModel | None:
        """Lowest-index pending item."""
        return await self._first_by_index(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.user_id == user_id,
            BatchItemModel.status == BatchItemStatus.PENDING,
        )

    async def get_next_stale(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
        stale_cutoff: datetime,
    ) -> BatchItemModel | None:
        """
        Lowest-index processing item whose claim is older than the cutoff.

        Args:
            stale_cutoff: Claims started before this instant are abandoned
        """
        return await self._first_by_index(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.user_id == user_id,
            BatchItemModel.status == BatchItemStatus.PROCESSING,
            BatchItemModel.processing_started_at < stale_cutoff,
        )

    async def get_next_retryable(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
        max_retries: int,
    ) -> BatchItemModel | None:
        """Lowest-index failed item still below the retry ceiling."""
        return await self._first_by_index(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.user_id == user_id,
            BatchItemModel.status == BatchItemStatus.FAILED,
            BatchItemModel.retry_count < max_retries,
        )

    async def claim(
        self,
        session: AsyncSession,
        item_id: UUID,
        observed_status: BatchItemStatus,
        started_at: datetime,
        max_retries: int,
        stale_cutoff: datetime | None = None,
    ) -> BatchItemModel | None:
        """
        Atomically claim an item for execution.

        The update only matches if the row is still in ``observed_status``.
        Failed items additionally must still be below the retry ceiling and
        get retry_count incremented; pending and stale items start at zero.
        A stale reclaim also requires the old claim to still be older than
        the cutoff, so two callers cannot both reclaim it.

        Args:
            session: Async database session
            item_id: Item UUID
            observed_status: Status the caller saw when selecting the item
            started_at: New processing_started_at
            max_retries: Retry ceiling for failed items
            stale_cutoff: Required when observed_status is processing

        Returns:
            The claimed item, or None if another caller won
        """
        criteria = [
            BatchItemModel.id == item_id,
            BatchItemModel.status == observed_status,
        ]
        values: dict[str, Any] = {
            "status": BatchItemStatus.PROCESSING,
            "processing_started_at": started_at,
        }

        if observed_status == BatchItemStatus.FAILED:
            criteria.append(BatchItemModel.retry_count < max_retries)
            values["retry_count"] = BatchItemModel.retry_count + 1
        else:
            values["retry_count"] = 0

        if observed_status == BatchItemStatus.PROCESSING:
            if stale_cutoff is None:
                raise ValueError("stale_cutoff is required to reclaim a processing item")
            criteria.append(BatchItemModel.processing_started_at < stale_cutoff)

        return await self.guarded_update(session, *criteria, values=values)

    async def record_success(
        self,
        session: AsyncSession,
        item_id: UUID,
        claimed_at: datetime | None,
        completed_at: datetime,
        duration_ms: int,
        **result_fields,
    ) -> bool:
        """
        Store a successful research result on a processing item.

        Args:
            claimed_at: processing_started_at written by the caller's claim
            result_fields: Result columns (report_content, romy_score, ...)

        Returns:
            True if the caller's claim was still current and the item was updated
        """
        return await self._record_outcome(
            session,
            item_id,
            claimed_at,
            status=BatchItemStatus.COMPLETED,
            error_message=None,
            processing_completed_at=completed_at,
            processing_duration_ms=duration_ms,
            **result_fields,
        )

    async def record_failure(
        self,
        session: AsyncSession,
        item_id: UUID,
        claimed_at: datetime | None,
        error_message: str,
        failed_at: datetime,
        duration_ms: int,
    ) -> bool:
        """
        Mark a processing item failed. retry_count is left unchanged.

        Returns:
            True if the caller's claim was still current and the item was updated
        """
        return await self._record_outcome(
            session,
            item_id,
            claimed_at,
            status=BatchItemStatus.FAILED,
            error_message=error_message,
            processing_completed_at=failed_at,
            processing_duration_ms=duration_ms,
            last_retry_at=failed_at,
        )

    async def _record_outcome(
        self,
        session: AsyncSession,
        item_id: UUID,
        claimed_at: datetime | None,
        **values,
    ) -> bool:
        # A reclaim rewrites processing_started_at, so a superseded executor
        # no longer matches. A None token matches no processing row.
        updated = await self.guarded_update(
            session,
            BatchItemModel.id == item_id,
            BatchItemModel.status == BatchItemStatus.PROCESSING,
            BatchItemModel.processing_started_at == claimed_at,
            values=values,
        )
        return updated is not None

    async def count_by_status(self, session: AsyncSession, job_id: UUID) -> dict[BatchItemStatus, int]:
        """Item counts keyed by status (missing statuses are zero)."""
        stmt = (
            select(BatchItemModel.status, func.count())
            .where(BatchItemModel.job_id == job_id)
            .group_by(BatchItemModel.status)
        )
        counts = {status: 0 for status in BatchItemStatus}
        for status, count in (await session.execute(stmt)).all():
            counts[BatchItemStatus(status)] = count
        return counts

    async def count_unfinished(self, session: AsyncSession, job_id: UUID) -> int:
        """Count pending plus processing items."""
        return await self.count_where(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.status.in_(UNFINISHED_ITEM_STATUSES),
        )

    async def count_pending(self, session: AsyncSession, job_id: UUID) -> int:
        return await self.count_where(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.status == BatchItemStatus.PENDING,
        )

    async def count_retryable(self, session: AsyncSession, job_id: UUID, max_retries: int) -> int:
        """Count failed items still below the retry ceiling."""
        return await self.count_where(
            session,
            BatchItemModel.job_id == job_id,
            BatchItemModel.status == BatchItemStatus.FAILED,
            BatchItemModel.retry_count < max_retries,
        )

    async def list_for_job(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
        status: BatchItemStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[Sequence[BatchItemModel], int]:
        """
        Page through a job's items in index order.

        Returns:
            tuple: (items on this page, total matching items)
        """
        filters = [BatchItemModel.job_id == job_id, BatchItemModel.user_id == user_id]
        if status is not None:
            filters.append(BatchItemModel.status == status)

        stmt = (
            select(BatchItemModel)
            .where(*filters)
            .order_by(BatchItemModel.item_index.asc())
            .offset(offset)
            .limit(limit)
        )
        count_stmt = select(func.count()).select_from(BatchItemModel).where(*filters)

        items = (await session.execute(stmt)).scalars().all()
        total = (await session.execute(count_stmt)).scalar_one()
        return items, total

    async def list_completed(
        self,
        session: AsyncSession,
        job_id: UUID,
        user_id: str,
    ) -> Sequence[BatchItemModel]:
        """All completed items of a job in index order."""
        stmt = (
            select(BatchItemModel)
            .where(
                BatchItemModel.job_id == job_id,
                BatchItemModel.user_id == user_id,
                BatchItemModel.status == BatchItemStatus.COMPLETED,
            )
            .order_by(BatchItemModel.item_index.asc())
        )
        return (await session.execute(stmt)).scalars().all()

    async def reset_unfinished(self, session: AsyncSession, job_id: UUID) -> int:
        """
        Return every non-completed item of a job to pending.

        Clears error_message, retry_count, the processing timestamps and
        the previous run's timing.

        Returns:
            int: Number of items reset
        """
        stmt = (
            update(BatchItemModel)
            .where(
                BatchItemModel.job_id == job_id,
                BatchItemModel.status != BatchItemStatus.COMPLETED,
            )
            .values(
                status=BatchItemStatus.PENDING,
                error_message=None,
                retry_count=0,
                processing_started_at=None,
                processing_completed_at=None,
                processing_duration_ms=None,
                last_retry_at=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await session.execute(stmt)
        return result.rowcount


batch_item_crud = BatchItemCRUD()
