"""
Database models package.

Exports:
  - BatchJobModel, BatchJobStatus: Job aggregate model and status enum
  - BatchItemModel, BatchItemStatus: Work item model and status enum

Dependencies: sqlalchemy, prospect_batch.boundary.db.base
System role: Database model definitions for batch prospect research
"""

from prospect_batch.boundary.db.models.batch_item_model import BatchItemModel, BatchItemStatus
from prospect_batch.boundary.db.models.batch_job_model import (
    ACTIVE_JOB_STATUSES,
    RUNNABLE_JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    BatchJobModel,
    BatchJobStatus,
)

__all__ = [
    "BatchJobModel",
    "BatchJobStatus",
    "BatchItemModel",
    "BatchItemStatus",
    "ACTIVE_JOB_STATUSES",
    "RUNNABLE_JOB_STATUSES",
    "TERMINAL_JOB_STATUSES",
]
