"""
Batch research Celery task.

Durable task: run_batch_research(params)
Flow: validate params -> research prospect -> record item outcome

The task records the outcome through the same recorder as inline
execution. It never finalizes the job; the next process-next call does
that after counting remaining work.

Dependencies: celery, sqlalchemy, prospect_batch.core.batch_processing
System role: Durable workflow step for batch prospect research
"""

import asyncio
import logging
from typing import Any

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prospect_batch.boundary.db.connection import build_async_engine, build_session_factory
from prospect_batch.configs import get_settings
from prospect_batch.core.batch_processing.execution import (
    ExecutionContext,
    run_and_record_research,
)
from prospect_batch.core.batch_processing.research import ProspectResearchAgent, ResearchPipeline
from prospect_batch.workers import celery_app

logger = logging.getLogger(__name__)

RUN_BATCH_RESEARCH_TASK = "prospect_batch.run_batch_research"

_celery_settings = get_settings().celery


async def run_batch_research_workflow(
    params: dict[str, Any],
    pipeline: ResearchPipeline | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> dict[str, Any]:
    """
    Execute one claimed item and record its outcome.

    Args:
        params: Workflow parameters (see ExecutionContext.to_workflow_params)
        pipeline: Research pipeline (defaults to ProspectResearchAgent)
        session_factory: Session factory (defaults to a task-scoped engine)

    Returns:
        dict: success, error, error_code, recorded, duration_ms

    Raises:
        pydantic.ValidationError: If params are malformed
        SQLAlchemyError: If the outcome could not be recorded
    """
    context = ExecutionContext.from_workflow_params(params)
    settings = get_settings()

    engine = None
    if session_factory is None:
        engine = build_async_engine()
        session_factory = build_session_factory(engine)

    try:
        async with session_factory() as session:
            outcome = await run_and_record_research(
                session,
                pipeline or ProspectResearchAgent(),
                context,
                timeout_seconds=settings.batch.prospect_processing_timeout_ms / 1000,
                strategy="durable",
            )
    finally:
        if engine is not None:
            await engine.dispose()

    return {
        "success": outcome.success,
        "error": outcome.error_message,
        "error_code": outcome.error_code.value if outcome.error_code else None,
        "recorded": outcome.recorded,
        "duration_ms": outcome.duration_ms,
    }


@celery_app.task(
    bind=True,
    name=RUN_BATCH_RESEARCH_TASK,
    max_retries=_celery_settings.task_max_retries,
    autoretry_for=(OperationalError, InterfaceError),
    retry_backoff=_celery_settings.task_retry_backoff,
    retry_backoff_max=_celery_settings.task_retry_backoff_max,
)
def run_batch_research(self, params: dict[str, Any]) -> dict[str, Any]:
    """
    Run the batch research workflow for one item.

    Store connectivity errors are retried with backoff; enrichment
    failures are recorded on the item and returned as success=False.

    Args:
        params: Workflow parameters

    Returns:
        dict: Outcome summary
    """
    logger.info(
        "Batch research task started",
        extra={
            "task_id": self.request.id,
            "item_id": params.get("item_id"),
            "attempt": self.request.retries,
        },
    )
    return asyncio.run(run_batch_research_workflow(params))
