"""
Unit tests for the Celery workflow runner.

The Celery app is mocked; no broker or result backend is needed.

Dependencies: pytest, unittest.mock, celery, kombu, redis
System role: Durable workflow adapter verification
"""

from unittest.mock import MagicMock

import pytest
from celery.exceptions import TimeoutError as CeleryTimeoutError
from kombu.exceptions import OperationalError as BrokerOperationalError
from redis.exceptions import ConnectionError as RedisConnectionError

from prospect_batch.application.adapters.workflow_runner import CeleryWorkflowRunner
from prospect_batch.core.batch_processing.execution import BATCH_RESEARCH_WORKFLOW
from prospect_batch.core.exceptions import WorkflowInfrastructureError
from prospect_batch.workers.tasks.batch_research import RUN_BATCH_RESEARCH_TASK

PARAMS = {"job_id": "j", "item_id": "i", "user_id": "u", "prospect": {"name": "Jane"}}


def make_app(payload=None, failed=False, send_error=None, get_error=None):
    async_result = MagicMock()
    async_result.id = "task-123"
    async_result.failed.return_value = failed
    async_result.get.side_effect = get_error
    async_result.get.return_value = payload

    app = MagicMock()
    app.send_task.side_effect = send_error
    app.send_task.return_value = async_result
    return app, async_result


class TestCeleryWorkflowRunner:
    """Test suite for CeleryWorkflowRunner.run."""

    async def test_returns_workflow_result(self):
        app, async_result = make_app(payload={"success": True, "error": None, "recorded": True})
        runner = CeleryWorkflowRunner(app, result_timeout_seconds=30)

        result = await runner.run(BATCH_RESEARCH_WORKFLOW, PARAMS)

        app.send_task.assert_called_once_with(RUN_BATCH_RESEARCH_TASK, args=[PARAMS])
        async_result.get.assert_called_once_with(timeout=30, propagate=False)
        assert result.success is True
        assert result.data["recorded"] is True

    async def test_enrichment_failure_is_a_result(self):
        app, _ = make_app(payload={"success": False, "error": "AI service temporarily unavailable."})

        result = await CeleryWorkflowRunner(app, 30).run(BATCH_RESEARCH_WORKFLOW, PARAMS)

        assert result.success is False
        assert result.error == "AI service temporarily unavailable."

    async def test_unknown_workflow(self):
        app, _ = make_app()

        with pytest.raises(WorkflowInfrastructureError, match="Unknown workflow"):
            await CeleryWorkflowRunner(app, 30).run("nightly-export", PARAMS)

        app.send_task.assert_not_called()

    @pytest.mark.parametrize(
        "send_error,get_error",
        [
            (BrokerOperationalError("connection refused"), None),
            (None, CeleryTimeoutError("The operation timed out.")),
            (None, RedisConnectionError("redis down")),
        ],
    )
    async def test_engine_failures_raise_infrastructure_error(self, send_error, get_error):
        app, _ = make_app(send_error=send_error, get_error=get_error)

        with pytest.raises(WorkflowInfrastructureError, match="unavailable"):
            await CeleryWorkflowRunner(app, 30).run(BATCH_RESEARCH_WORKFLOW, PARAMS)

    async def test_crashed_task_raises_infrastructure_error(self):
        app, _ = make_app(payload=RuntimeError("worker lost"), failed=True)

        with pytest.raises(WorkflowInfrastructureError, match="crashed"):
            await CeleryWorkflowRunner(app, 30).run(BATCH_RESEARCH_WORKFLOW, PARAMS)
