"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: fastapi, prospect_batch.configs, prospect_batch.application, prospect_batch.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.application.services.batch_job_service import BatchJobService
from prospect_batch.application.services.batch_processor import BatchProcessor
from prospect_batch.boundary.db import get_async_db
from prospect_batch.configs import get_settings


class ServiceCache:
    """Container for process-wide collaborators built on first use."""

    def __init__(self):
        self._research_pipeline = None
        self._workflow_runner = None
        self._notifier = None

    @property
    def research_pipeline(self):
        """Get cached research agent."""
        if self._research_pipeline is None:
            from prospect_batch.core.batch_processing.research import ProspectResearchAgent
            self._research_pipeline = ProspectResearchAgent()
        return self._research_pipeline

    @property
    def workflow_runner(self):
        """Get cached Celery workflow runner."""
        if self._workflow_runner is None:
            from prospect_batch.application.adapters.workflow_runner import CeleryWorkflowRunner
            from prospect_batch.workers import celery_app

            self._workflow_runner = CeleryWorkflowRunner(
                celery_app,
                result_timeout_seconds=get_settings().workflow.result_timeout_seconds,
            )
        return self._workflow_runner

    @property
    def notifier(self):
        """Get cached completion notifier."""
        if self._notifier is None:
            from prospect_batch.application.adapters.completion_notifier import CeleryCompletionNotifier
            self._notifier = CeleryCompletionNotifier()
        return self._notifier

    def clear(self) -> None:
        """Clear all cached instances."""
        self._research_pipeline = None
        self._workflow_runner = None
        self._notifier = None


_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_current_user_id(
    x_user_id: str | None = Header(default=None, alias="X-User-ID"),
) -> str:
    """
    Resolve the caller identity.

    Authentication happens upstream; the gateway forwards the verified
    user id in the X-User-ID header.

    Raises:
        HTTPException(401): If the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return x_user_id.strip()


def get_batch_processor(
    db: AsyncSession = Depends(get_async_db),
    cache: ServiceCache = Depends(get_service_cache),
) -> BatchProcessor:
    """
    Get batch processor instance.

    The workflow runner is only wired in when durable workflows are
    globally enabled; per-user rollout is decided by the processor.

    Args:
        db: Async database session (injected via Depends)
        cache: Service cache (injected via Depends)

    Returns:
        BatchProcessor: Processor bound to this request's session
    """
    settings = get_settings()
    return BatchProcessor(
        db,
        pipeline=cache.research_pipeline,
        notifier=cache.notifier,
        workflow_runner=cache.workflow_runner if settings.workflow.enabled else None,
        settings=settings,
    )


def get_batch_job_service(
    db: AsyncSession = Depends(get_async_db),
    cache: ServiceCache = Depends(get_service_cache),
) -> BatchJobService:
    """
    Get batch job service instance.

    Args:
        db: Async database session (injected via Depends)
        cache: Service cache (injected via Depends)

    Returns:
        BatchJobService: Service bound to this request's session
    """
    return BatchJobService(db, pipeline=cache.research_pipeline)
