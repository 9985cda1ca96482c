"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - build_async_engine(), get_async_engine(), get_async_db(): Connection management
  - BatchJobModel, BatchItemModel: Job and work item entities
  - BatchJobStatus, BatchItemStatus: Lifecycle enums
  - batch_job_crud, batch_item_crud: CRUD singletons

Dependencies: sqlalchemy, prospect_batch.configs
System role: Relational store shared by every process-next invocation
"""

from prospect_batch.boundary.db.base import Base, TimestampMixin, UUIDMixin, utc_now
from prospect_batch.boundary.db.connection import (
    build_async_engine,
    build_session_factory,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from prospect_batch.boundary.db.models import (
    ACTIVE_JOB_STATUSES,
    RUNNABLE_JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    BatchItemModel,
    BatchItemStatus,
    BatchJobModel,
    BatchJobStatus,
)
from prospect_batch.boundary.db.CRUD import (
    BaseCRUD,
    BatchItemCRUD,
    BatchJobCRUD,
    batch_item_crud,
    batch_job_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Connection
    "build_async_engine",
    "build_session_factory",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "BatchJobModel",
    "BatchJobStatus",
    "BatchItemModel",
    "BatchItemStatus",
    "ACTIVE_JOB_STATUSES",
    "RUNNABLE_JOB_STATUSES",
    "TERMINAL_JOB_STATUSES",
    # CRUD
    "BaseCRUD",
    "BatchJobCRUD",
    "BatchItemCRUD",
    "batch_job_crud",
    "batch_item_crud",
]
