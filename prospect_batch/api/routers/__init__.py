"""
API routers.

Exports:
  - batch_jobs_router: batch job creation, control, polling and item retry
  - health_router: liveness and database health checks
"""

from prospect_batch.api.routers.batch_jobs import router as batch_jobs_router
from prospect_batch.api.routers.health import router as health_router

__all__ = ["batch_jobs_router", "health_router"]
