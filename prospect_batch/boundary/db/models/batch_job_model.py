"""
Batch job ORM model.

A batch job is the aggregate over many prospect work items. It owns the
lifecycle status callers drive through polling and carries denormalized
progress counters recomputed from its items.

Dependencies: sqlalchemy, prospect_batch.boundary.db.base
System role: Job aggregate store for batch prospect research
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prospect_batch.boundary.db.base import Base, TimestampMixin, UUIDMixin


class BatchJobStatus(str, enum.Enum):
    """
    Batch job lifecycle states.

    PENDING: Created, no item processed yet
    PROCESSING: At least one process-next call has started the job
    PAUSED: Held by the owner; process-next is a no-op
    COMPLETED: No pending or processing items remain
    FAILED: Marked failed by an operator
    CANCELLED: Stopped by the owner
    """

    PENDING = "pending"
    PROCESSING = "processing"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_JOB_STATUSES = frozenset(
    {BatchJobStatus.COMPLETED, BatchJobStatus.FAILED, BatchJobStatus.CANCELLED}
)
RUNNABLE_JOB_STATUSES = frozenset({BatchJobStatus.PENDING, BatchJobStatus.PROCESSING})
ACTIVE_JOB_STATUSES = frozenset(
    {BatchJobStatus.PENDING, BatchJobStatus.PROCESSING, BatchJobStatus.PAUSED}
)


class BatchJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Batch job ORM model.

    Attributes:
        id: UUID primary key
        user_id: Owner identity; every query is scoped by it
        name: Display name
        description: Optional description
        status: Lifecycle status
        total_prospects: Number of items created with the job
        completed_count: Items in completed state (recomputed)
        failed_count: Items in failed state (recomputed)
        skipped_count: Items skipped at submission time
        started_at: First transition to processing
        completed_at: Transition to completed
        settings: Per-job settings (delay_between_prospects_ms, ...)
        source_file_name: Uploaded file name, if any
        error_message: Job-level error, if any
        items: Work items (deleted with the job)

    Invariant:
        completed_count + failed_count + skipped_count <= total_prospects
    """

    __tablename__ = "batch_prospect_jobs"
    __table_args__ = (
        Index("idx_batch_jobs_user_status", "user_id", "status"),
        Index("idx_batch_jobs_created_at", "created_at"),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    status: Mapped[BatchJobStatus] = mapped_column(
        Enum(
            BatchJobStatus,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=BatchJobStatus.PENDING,
    )

    total_prospects: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    completed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skipped_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )

    settings: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        doc="Per-job processing settings",
    )

    source_file_name: Mapped[str | None] = mapped_column(String(512), nullable=True)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    items = relationship(
        "BatchItemModel",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES
