"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from prospect_batch.configs.base import BaseSettings
from prospect_batch.configs.batch import BatchProcessingSettings
from prospect_batch.configs.celery_config import CelerySettings
from prospect_batch.configs.database import DatabaseSettings
from prospect_batch.configs.notifications import NotificationSettings
from prospect_batch.configs.research import ResearchSettings
from prospect_batch.configs.workflow import WorkflowSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    batch: BatchProcessingSettings = Field(default_factory=BatchProcessingSettings)
    workflow: WorkflowSettings = Field(default_factory=WorkflowSettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)
    research: ResearchSettings = Field(default_factory=ResearchSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from prospect_batch.configs import get_settings
        settings = get_settings()
    """
    return Settings()
