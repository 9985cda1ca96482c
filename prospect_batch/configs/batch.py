"""
Batch processing configuration settings.

Retry ceiling, staleness threshold, pacing delays, and submission limits
for batch prospect research jobs.

Dependencies: pydantic, pydantic_settings
System role: Process-wide defaults for the batch job engine
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatchProcessingSettings(BaseSettings):
    """Batch job engine limits and defaults."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BATCH_",
        case_sensitive=False,
        extra="ignore",
    )

    max_retries_per_prospect: int = Field(
        default=3,
        ge=0,
        description="Retries allowed for a failed item before it stays failed",
    )
    stale_item_threshold_ms: int = Field(
        default=10 * 60 * 1000,
        gt=0,
        description="Age after which a processing item is presumed abandoned",
    )
    prospect_processing_timeout_ms: int = Field(
        default=120_000,
        gt=0,
        description="Upper bound for one enrichment call",
    )

    default_delay_between_prospects_ms: int = Field(default=1000, ge=0)
    min_delay_between_prospects_ms: int = Field(default=500, ge=0)
    max_delay_between_prospects_ms: int = Field(default=30_000, ge=0)

    max_prospects_per_batch: int = Field(default=1000, gt=0)
    max_concurrent_jobs_per_user: int = Field(default=3, gt=0)
    estimated_seconds_per_prospect: int = Field(
        default=30,
        description="Average enrichment time used for remaining-time estimates",
    )
