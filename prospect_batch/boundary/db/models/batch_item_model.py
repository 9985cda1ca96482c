"""
Batch work item ORM model.

One row per prospect in a batch job. Items are claimed with a
conditional status update, executed by the research pipeline, and hold
the enrichment results on success.

Dependencies: sqlalchemy, prospect_batch.boundary.db.base
System role: Work item store for batch prospect research
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prospect_batch.boundary.db.base import Base, TimestampMixin, UUIDMixin


class BatchItemStatus(str, enum.Enum):
    """
    Work item states.

    PENDING: Waiting to be claimed
    PROCESSING: Claimed by a caller; stale after the staleness threshold
    COMPLETED: Research succeeded, result columns populated
    FAILED: Research failed; retryable while retry_count is below the ceiling
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class BatchItemModel(Base, UUIDMixin, TimestampMixin):
    """
    Batch work item ORM model.

    Attributes:
        job_id: Parent job (cascade delete)
        user_id: Owner identity, copied from the job
        item_index: Position within the job, unique per job
        status: Item lifecycle status
        input_data: Structured prospect payload as submitted
        prospect_name/address/city/state/zip: Denormalized copies of the input
        retry_count: Times a failed item has been re-claimed
        processing_started_at: Set on claim; drives staleness detection
        processing_completed_at: Set when an outcome is recorded
        processing_duration_ms: Wall time of the last execution
        error_message: User-facing message of the last failure
        last_retry_at: Time of the last recorded failure
        report_content ... enrichment_data: Research results
    """

    __tablename__ = "batch_prospect_items"
    __table_args__ = (
        UniqueConstraint("job_id", "item_index", name="uq_batch_items_job_index"),
        Index("idx_batch_items_job_status", "job_id", "status", "item_index"),
    )

    job_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("batch_prospect_jobs.id", ondelete="CASCADE"),
        nullable=False,
        doc="Batch job this item belongs to",
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    item_index: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[BatchItemStatus] = mapped_column(
        Enum(
            BatchItemStatus,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=BatchItemStatus.PENDING,
    )

    input_data: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    prospect_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    prospect_address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    prospect_city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    prospect_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    prospect_zip: Mapped[str | None] = mapped_column(String(32), nullable=True)

    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processing_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processing_completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    processing_duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_retry_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Research results
    report_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    romy_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    romy_score_tier: Mapped[str | None] = mapped_column(String(32), nullable=True)
    capacity_rating: Mapped[str | None] = mapped_column(String(32), nullable=True)
    estimated_net_worth: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_gift_capacity: Mapped[float | None] = mapped_column(Float, nullable=True)
    recommended_ask: Mapped[float | None] = mapped_column(Float, nullable=True)
    sources_found: Mapped[list | None] = mapped_column(JSON, nullable=True)
    tokens_used: Mapped[int | None] = mapped_column(Integer, nullable=True)
    model_used: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enrichment_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    job = relationship("BatchJobModel", back_populates="items")
