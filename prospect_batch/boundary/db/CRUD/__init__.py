"""
CRUD operations for database models.

Exports the base CRUD class and the job/item CRUD implementations with
pre-instantiated singletons for direct use.

Usage:
    from prospect_batch.boundary.db.CRUD import batch_job_crud, batch_item_crud

    job = await batch_job_crud.get_for_user(db, job_id, user_id)
"""

from prospect_batch.boundary.db.CRUD.base_crud import BaseCRUD
from prospect_batch.boundary.db.CRUD.batch_item_crud import BatchItemCRUD, batch_item_crud
from prospect_batch.boundary.db.CRUD.batch_job_crud import BatchJobCRUD, batch_job_crud

__all__ = [
    "BaseCRUD",
    "BatchJobCRUD",
    "batch_job_crud",
    "BatchItemCRUD",
    "batch_item_crud",
]
