"""
Celery-backed durable workflow runner.

Sends a workflow task to the broker and waits for its result. Anything
that keeps the run from producing a result (broker down, result backend
down, timeout, crashed task) is reported as WorkflowInfrastructureError
so callers can fall back to inline execution.

Dependencies: celery, kombu, redis, prospect_batch.workers
System role: Durable workflow engine adapter
"""

import asyncio
import logging
from typing import Any

from celery import Celery
from celery.exceptions import TimeoutError as CeleryTimeoutError
from kombu.exceptions import OperationalError as BrokerOperationalError
from redis.exceptions import RedisError

from prospect_batch.core.batch_processing.execution import BATCH_RESEARCH_WORKFLOW, WorkflowResult
from prospect_batch.core.exceptions import WorkflowInfrastructureError
from prospect_batch.workers.tasks.batch_research import RUN_BATCH_RESEARCH_TASK

logger = logging.getLogger(__name__)

WORKFLOW_TASKS = {BATCH_RESEARCH_WORKFLOW: RUN_BATCH_RESEARCH_TASK}

INFRASTRUCTURE_ERRORS = (BrokerOperationalError, CeleryTimeoutError, RedisError, OSError)


class CeleryWorkflowRunner:
    """Runs named workflows as Celery tasks and waits for the result."""

    def __init__(self, app: Celery, result_timeout_seconds: float) -> None:
        """
        Initialize runner.

        Args:
            app: Celery application
            result_timeout_seconds: Maximum wait for a workflow result
        """
        self._app = app
        self._result_timeout_seconds = result_timeout_seconds

    async def run(self, workflow: str, params: dict[str, Any]) -> WorkflowResult:
        """
        Run a workflow to completion.

        Args:
            workflow: Workflow name
            params: JSON-serializable workflow parameters

        Returns:
            WorkflowResult: Outcome reported by the workflow

        Raises:
            WorkflowInfrastructureError: If the run could not be started or
                did not produce a result
        """
        task_name = WORKFLOW_TASKS.get(workflow)
        if task_name is None:
            raise WorkflowInfrastructureError(f"Unknown workflow '{workflow}'", workflow=workflow)

        try:
            async_result = await asyncio.to_thread(
                self._app.send_task, task_name, args=[params]
            )
            payload = await asyncio.to_thread(
                async_result.get,
                timeout=self._result_timeout_seconds,
                propagate=False,
            )
        except INFRASTRUCTURE_ERRORS as exc:
            raise WorkflowInfrastructureError(
                "Durable workflow engine unavailable",
                workflow=workflow,
                details={"error_type": type(exc).__name__, "error": str(exc)},
            ) from exc

        if async_result.failed() or not isinstance(payload, dict):
            raise WorkflowInfrastructureError(
                "Durable workflow run crashed",
                workflow=workflow,
                details={"task_id": async_result.id, "error": str(payload)},
            )

        logger.info(
            "Durable workflow finished",
            extra={
                "workflow": workflow,
                "task_id": async_result.id,
                "success": payload.get("success"),
            },
        )
        return WorkflowResult(
            success=bool(payload.get("success")),
            error=payload.get("error"),
            data=payload,
        )
