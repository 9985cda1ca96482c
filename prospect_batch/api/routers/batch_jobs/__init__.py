"""
Batch jobs router package.

Exports the router for batch job endpoints.
"""

from .batch_jobs_router import router

__all__ = ["router"]
