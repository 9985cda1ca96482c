"""
FastAPI dependency providers.
"""

from prospect_batch.api.deps.dependencies import (
    get_batch_job_service,
    get_batch_processor,
    get_current_user_id,
    get_service_cache,
)

__all__ = [
    "get_batch_job_service",
    "get_batch_processor",
    "get_current_user_id",
    "get_service_cache",
]
