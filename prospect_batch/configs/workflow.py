"""
Durable workflow configuration settings.

Feature flags and rollout controls deciding whether batch items run through
the durable workflow engine or inline in the request.

Dependencies: pydantic_settings
System role: Execution strategy feature flags
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkflowSettings(BaseSettings):
    """Durable workflow feature flags."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WORKFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=False,
        description="Global kill switch for durable workflows",
    )
    flag_batch_processing: bool = Field(
        default=True,
        description="Enable the durable-batch-processing workflow",
    )
    rollout_percentage: int = Field(
        default=100,
        ge=0,
        le=100,
        description="Share of users (by stable hash) routed to workflows",
    )
    result_timeout_seconds: float = Field(
        default=110.0,
        gt=0,
        description="How long a request waits for a workflow run to finish",
    )
