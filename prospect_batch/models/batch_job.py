"""
Batch job domain models and schemas.

Request/response schemas for batch job creation, control, polling and
item retry.

Dependencies: pydantic
System role: Batch job API contracts
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BatchJobSettings(BaseModel):
    """Per-job processing settings."""

    model_config = ConfigDict(extra="allow")

    delay_between_prospects_ms: int | None = Field(
        default=None,
        description="Pause between prospects used for time estimates",
    )
    enable_web_search: bool = Field(default=True)
    generate_romy_score: bool = Field(default=True)
    notification_email: str | None = Field(
        default=None,
        description="Where to send the completion notification",
    )


class CreateBatchJobRequest(BaseModel):
    """Request schema for creating a batch job."""

    name: str = Field(..., max_length=255, description="Job name")
    description: str | None = Field(None, max_length=4096, description="Job description")
    prospects: list[dict[str, Any]] = Field(
        default_factory=list,
        description="Prospect rows (name, address, city, state, zip, full_address, ...)",
    )
    settings: BatchJobSettings | None = None
    source_file_name: str | None = Field(None, max_length=512)


class UpdateBatchJobRequest(BaseModel):
    """Request schema for changing a job's status."""

    status: str = Field(..., description="pending, processing, paused or cancelled")


class BatchJobResponse(BaseModel):
    """Batch job as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    name: str
    description: str | None
    status: str
    total_prospects: int
    completed_count: int
    failed_count: int
    skipped_count: int
    started_at: datetime | None
    completed_at: datetime | None
    settings: dict
    source_file_name: str | None
    error_message: str | None
    created_at: datetime
    updated_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, value: Any) -> Any:
        return value.value if isinstance(value, enum.Enum) else value


class BatchItemResponse(BaseModel):
    """Batch work item as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    job_id: uuid.UUID
    item_index: int
    status: str
    input_data: dict
    prospect_name: str | None
    prospect_address: str | None
    prospect_city: str | None
    prospect_state: str | None
    prospect_zip: str | None
    retry_count: int
    processing_started_at: datetime | None
    processing_completed_at: datetime | None
    processing_duration_ms: int | None
    error_message: str | None
    last_retry_at: datetime | None
    report_content: str | None
    romy_score: int | None
    romy_score_tier: str | None
    capacity_rating: str | None
    estimated_net_worth: float | None
    estimated_gift_capacity: float | None
    recommended_ask: float | None
    sources_found: list | None
    tokens_used: int | None
    model_used: str | None
    enrichment_data: dict | None

    @field_validator("status", mode="before")
    @classmethod
    def _status_value(cls, value: Any) -> Any:
        return value.value if isinstance(value, enum.Enum) else value


class ItemProgress(BaseModel):
    """Item counts returned with every process-next response."""

    completed: int
    total: int
    failed: int


class ProcessNextItemResponse(BaseModel):
    """Response schema for one process-next call."""

    item: BatchItemResponse | None = None
    job_status: str
    progress: ItemProgress
    has_more: bool
    message: str
    strategy: str | None = Field(default=None, description="Execution strategy used, if any")


class JobProgressEstimate(BaseModel):
    percentage: int = Field(description="Completed share (0-100)")
    estimated_remaining_ms: int


class BatchJobDetailResponse(BaseModel):
    """Job with a page of items and a progress estimate."""

    job: BatchJobResponse
    items: list[BatchItemResponse] = Field(default_factory=list)
    items_total: int = 0
    progress: JobProgressEstimate


class CreateBatchJobResponse(BaseModel):
    """Response schema for job creation."""

    job: BatchJobResponse
    items_created: int
    duplicates_removed: int
    invalid_skipped: int
    low_quality_count: int
    message: str


class BatchJobListResponse(BaseModel):
    jobs: list[BatchJobResponse]
    total: int
    limit: int
    offset: int


class RetryItemResponse(BaseModel):
    """Response schema for a single-item retry."""

    success: bool
    item: BatchItemResponse
    message: str
