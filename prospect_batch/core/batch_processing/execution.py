"""
Execution strategies for claimed batch items.

A claimed item is executed either inline (the research pipeline runs in
the current request) or through the durable workflow engine. The choice
is made per user by feature flag. When the durable engine itself fails,
the fallback combinator runs the item inline in the same invocation.

Both paths record the outcome through ``run_and_record_research`` so an
item ends in the same state whichever path ran it.

Dependencies: sqlalchemy, pydantic, prospect_batch.boundary.db
System role: Execution strategy selection and outcome recording
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.boundary.db.base import utc_now
from prospect_batch.boundary.db.CRUD import batch_item_crud, batch_job_crud
from prospect_batch.configs.workflow import WorkflowSettings
from prospect_batch.core.batch_processing.error_classifier import (
    BatchErrorCode,
    classify_batch_error,
)
from prospect_batch.core.batch_processing.feature_flags import (
    DURABLE_BATCH_PROCESSING,
    is_workflow_enabled,
)
from prospect_batch.core.batch_processing.prospect import ProspectInput
from prospect_batch.core.batch_processing.research import ResearchPipeline, adapt_pipeline_result
from prospect_batch.core.exceptions import WorkflowInfrastructureError
from prospect_batch.observability.log_utils import (
    log_item_event,
    log_item_failure,
    mask_prospect_name,
)

logger = logging.getLogger(__name__)

BATCH_RESEARCH_WORKFLOW = "batch-research"


class WorkflowParams(BaseModel):
    """Parameters accepted by the batch research workflow."""

    job_id: UUID
    item_id: UUID
    user_id: str = Field(min_length=1)
    prospect: ProspectInput
    options: dict[str, Any] = Field(default_factory=dict)
    claimed_at: datetime | None = None


@dataclass
class ExecutionContext:
    """
    Everything a strategy needs to execute one claimed item.

    ``claimed_at`` is the processing_started_at written by the claim. It is
    the claim token: an outcome is only recorded while the row still
    carries it, so an executor whose claim was reclaimed records nothing.
    """

    job_id: UUID
    item_id: UUID
    user_id: str
    prospect: ProspectInput
    options: dict[str, Any] = field(default_factory=dict)
    claimed_at: datetime | None = None

    def to_workflow_params(self) -> dict[str, Any]:
        """JSON-safe parameters for the durable workflow."""
        return {
            "job_id": str(self.job_id),
            "item_id": str(self.item_id),
            "user_id": self.user_id,
            "prospect": self.prospect.model_dump(mode="json"),
            "options": self.options,
            "claimed_at": self.claimed_at.isoformat() if self.claimed_at else None,
        }

    @classmethod
    def from_workflow_params(cls, params: dict[str, Any]) -> "ExecutionContext":
        """
        Rebuild a context from workflow parameters.

        Raises:
            pydantic.ValidationError: If the parameters are malformed
        """
        validated = WorkflowParams.model_validate(params)
        return cls(
            job_id=validated.job_id,
            item_id=validated.item_id,
            user_id=validated.user_id,
            prospect=validated.prospect,
            options=validated.options,
            claimed_at=validated.claimed_at,
        )


class ExecutionOutcome(BaseModel):
    """What happened to a claimed item."""

    success: bool
    strategy: str
    error_code: BatchErrorCode | None = None
    error_message: str | None = None
    duration_ms: int | None = None
    recorded: bool = True


class WorkflowResult(BaseModel):
    """Result returned by a durable workflow run."""

    success: bool
    error: str | None = None
    data: dict[str, Any] | None = None


class WorkflowRunner(Protocol):
    """Runs a named workflow to completion on the durable engine."""

    async def run(self, workflow: str, params: dict[str, Any]) -> WorkflowResult:
        ...


class ExecutionStrategy(Protocol):
    """Executes one claimed item and returns its outcome."""

    name: str

    async def execute(self, session: AsyncSession, context: ExecutionContext) -> ExecutionOutcome:
        ...


async def run_and_record_research(
    session: AsyncSession,
    pipeline: ResearchPipeline,
    context: ExecutionContext,
    timeout_seconds: float,
    strategy: str = "inline",
) -> ExecutionOutcome:
    """
    Run the research pipeline for a claimed item and persist the outcome.

    Pipeline errors, timeouts and unusable results become a failed item
    carrying the classified user-facing message. Store errors while
    recording propagate.

    Args:
        session: Async database session
        pipeline: Research pipeline
        context: Claimed item context
        timeout_seconds: Hard limit for the pipeline call
        strategy: Strategy name for logging

    Returns:
        ExecutionOutcome: Recorded outcome
    """
    start = time.monotonic()
    try:
        result = await asyncio.wait_for(
            pipeline.execute(context.prospect, context.options),
            timeout=timeout_seconds,
        )
        result_fields = adapt_pipeline_result(result)
    except Exception as exc:
        duration_ms = int((time.monotonic() - start) * 1000)
        classified = classify_batch_error(exc)
        log_item_failure(
            logger,
            "Prospect research failed",
            exc,
            context.job_id,
            context.item_id,
            prospect=mask_prospect_name(context.prospect.name),
            error_code=classified.code.value,
            strategy=strategy,
        )
        recorded = await batch_item_crud.record_failure(
            session,
            context.item_id,
            claimed_at=context.claimed_at,
            error_message=classified.user_message,
            failed_at=utc_now(),
            duration_ms=duration_ms,
        )
        await batch_job_crud.refresh_counts(session, context.job_id)
        await session.commit()
        return ExecutionOutcome(
            success=False,
            strategy=strategy,
            error_code=classified.code,
            error_message=classified.user_message,
            duration_ms=duration_ms,
            recorded=recorded,
        )

    duration_ms = int((time.monotonic() - start) * 1000)
    recorded = await batch_item_crud.record_success(
        session,
        context.item_id,
        claimed_at=context.claimed_at,
        completed_at=utc_now(),
        duration_ms=duration_ms,
        **result_fields,
    )
    await batch_job_crud.refresh_counts(session, context.job_id)
    await session.commit()

    log_item_event(
        logger,
        logging.INFO,
        "Prospect research recorded",
        context.job_id,
        context.item_id,
        duration_ms=duration_ms,
        strategy=strategy,
        recorded=recorded,
    )
    return ExecutionOutcome(
        success=True,
        strategy=strategy,
        duration_ms=duration_ms,
        recorded=recorded,
    )


class InlineExecutionStrategy:
    """Runs the research pipeline inside the current request."""

    name = "inline"

    def __init__(self, pipeline: ResearchPipeline, timeout_seconds: float) -> None:
        self.pipeline = pipeline
        self.timeout_seconds = timeout_seconds

    async def execute(self, session: AsyncSession, context: ExecutionContext) -> ExecutionOutcome:
        return await run_and_record_research(
            session,
            self.pipeline,
            context,
            timeout_seconds=self.timeout_seconds,
            strategy=self.name,
        )


class DurableWorkflowExecutionStrategy:
    """
    Delegates the item to the durable workflow engine.

    The workflow records the item outcome itself; callers re-read the item
    from the store afterwards.
    """

    name = "durable"

    def __init__(self, runner: WorkflowRunner, workflow: str = BATCH_RESEARCH_WORKFLOW) -> None:
        self.runner = runner
        self.workflow = workflow

    async def execute(self, session: AsyncSession, context: ExecutionContext) -> ExecutionOutcome:
        start = time.monotonic()
        result = await self.runner.run(self.workflow, context.to_workflow_params())
        duration_ms = int((time.monotonic() - start) * 1000)

        data = result.data or {}
        error_code = data.get("error_code")
        return ExecutionOutcome(
            success=result.success,
            strategy=self.name,
            error_code=BatchErrorCode(error_code) if error_code else None,
            error_message=result.error,
            duration_ms=duration_ms,
            recorded=data.get("recorded", True),
        )


class FallbackExecutionStrategy:
    """
    Runs ``primary`` and falls back to ``fallback`` on engine failure.

    Only WorkflowInfrastructureError triggers the fallback. Enrichment
    failures are outcomes, not infrastructure failures.
    """

    def __init__(self, primary: ExecutionStrategy, fallback: ExecutionStrategy) -> None:
        self.primary = primary
        self.fallback = fallback
        self.name = f"{primary.name}+{fallback.name}"

    async def execute(self, session: AsyncSession, context: ExecutionContext) -> ExecutionOutcome:
        try:
            return await self.primary.execute(session, context)
        except WorkflowInfrastructureError as exc:
            logger.warning(
                "Durable workflow unavailable, falling back",
                extra={
                    "job_id": str(context.job_id),
                    "item_id": str(context.item_id),
                    "primary": self.primary.name,
                    "fallback": self.fallback.name,
                    "error": exc.message,
                },
            )
            return await self.fallback.execute(session, context)


def select_execution_strategy(
    user_id: str,
    pipeline: ResearchPipeline,
    timeout_seconds: float,
    workflow_settings: WorkflowSettings,
    runner: WorkflowRunner | None = None,
) -> ExecutionStrategy:
    """
    Choose how a user's items are executed.

    Args:
        user_id: Caller identity
        pipeline: Research pipeline for inline execution
        timeout_seconds: Inline pipeline timeout
        workflow_settings: Workflow feature flags
        runner: Durable workflow runner (None forces inline)

    Returns:
        ExecutionStrategy: Inline, or durable with inline fallback
    """
    inline = InlineExecutionStrategy(pipeline, timeout_seconds)
    if runner is None or not is_workflow_enabled(
        DURABLE_BATCH_PROCESSING, user_id, workflow_settings
    ):
        return inline
    return FallbackExecutionStrategy(DurableWorkflowExecutionStrategy(runner), inline)
