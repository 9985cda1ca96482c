"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory async database, settings, research pipeline fakes,
notifier mocks and job/item builders
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest

from prospect_batch.core.batch_processing.research import (
    PipelineResult,
    ProspectResearchOutput,
)
from prospect_batch.core.batch_processing.research.research_schema import (
    BusinessOwnership,
    ResearchMetrics,
    ResearchSource,
    WealthProfile,
)


class FakeResearchPipeline:
    """
    Research pipeline double.

    Each call consumes the next scripted outcome: a PipelineResult is
    returned, an exception is raised. When the script runs out the
    default result is returned.
    """

    def __init__(self, outcomes: list[Any] | None = None, default: PipelineResult | None = None):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls: list[tuple[Any, dict]] = []

    async def execute(self, prospect, options=None) -> PipelineResult:
        self.calls.append((prospect, options or {}))
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
async def test_engine():
    """
    Create in-memory SQLite async engine with all tables.

    Yields:
        AsyncEngine: Engine sharing one connection across sessions
    """
    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from prospect_batch.boundary.db.base import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    """Session factory configured like production (expire_on_commit=False)."""
    from prospect_batch.boundary.db.connection import build_session_factory

    return build_session_factory(test_engine)


@pytest.fixture
async def test_async_db(test_session_factory):
    """
    Create in-memory SQLite async database session for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    async with test_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings():
    """
    Application settings with deterministic batch limits.

    MAX_RETRIES=3, staleness after 10 minutes, durable workflows off.
    """
    from prospect_batch.configs import Settings
    from prospect_batch.configs.batch import BatchProcessingSettings
    from prospect_batch.configs.workflow import WorkflowSettings

    return Settings(
        batch=BatchProcessingSettings(
            max_retries_per_prospect=3,
            stale_item_threshold_ms=10 * 60 * 1000,
            prospect_processing_timeout_ms=5000,
            default_delay_between_prospects_ms=1000,
            min_delay_between_prospects_ms=500,
            max_delay_between_prospects_ms=30_000,
            max_prospects_per_batch=1000,
            max_concurrent_jobs_per_user=3,
            estimated_seconds_per_prospect=30,
        ),
        workflow=WorkflowSettings(
            enabled=False,
            flag_batch_processing=True,
            rollout_percentage=100,
            result_timeout_seconds=5.0,
        ),
    )


@pytest.fixture
def research_output():
    """Structured research output with metrics, a business and two sources."""
    return ProspectResearchOutput(
        executive_summary="Jane Doe is a technology founder with significant philanthropic history.",
        metrics=ResearchMetrics(
            estimated_net_worth_low=4_000_000,
            estimated_net_worth_high=6_000_000,
            estimated_gift_capacity=250_000,
            recommended_ask=50_000,
            capacity_rating="MAJOR",
            romy_score=27,
            confidence_level="MEDIUM",
        ),
        wealth=WealthProfile(
            business_ownership=[
                BusinessOwnership(company="Doe Robotics", role="Founder", estimated_value=2_000_000),
            ],
        ),
        sources=[
            ResearchSource(title="County Assessor", url="https://assessor.example.com/doe"),
            ResearchSource(title="SEC EDGAR", url="https://sec.example.com/doe"),
        ],
    )


@pytest.fixture
def successful_result(research_output):
    """Successful pipeline result."""
    return PipelineResult(
        success=True,
        data=research_output,
        tokens_used=1200,
        model_used="gemini-2.5-flash",
        duration_ms=900,
    )


@pytest.fixture
def fake_pipeline(successful_result):
    """Pipeline that succeeds for every prospect unless scripted otherwise."""
    return FakeResearchPipeline(default=successful_result)


@pytest.fixture
def pipeline_factory(successful_result):
    """
    Build a scripted pipeline.

    Usage:
        pipeline = pipeline_factory([RuntimeError("boom"), successful_result])
    """
    def _build(outcomes: list[Any] | None = None) -> FakeResearchPipeline:
        return FakeResearchPipeline(outcomes, default=successful_result)

    return _build


@pytest.fixture
def mock_notifier():
    """
    Create mock completion notifier.

    Returns:
        AsyncMock: Notifier with async notify()
    """
    notifier = AsyncMock()
    notifier.notify = AsyncMock(return_value=None)
    return notifier


@pytest.fixture
def user_id():
    """Generate a test caller identity."""
    return f"user-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def make_job(test_async_db):
    """
    Insert a job with one item per entry in ``items``.

    Each entry is either a status string or a dict of item column
    overrides (``status``, ``retry_count``, ``processing_started_at`` ...).

    Usage:
        job, items = await make_job(user_id, ["pending", {"status": "failed", "retry_count": 2}])
    """
    from prospect_batch.boundary.db.base import utc_now
    from prospect_batch.boundary.db.CRUD import batch_item_crud, batch_job_crud
    from prospect_batch.boundary.db.models import (
        BatchItemStatus,
        BatchJobStatus,
    )

    async def _make(
        owner: str,
        items: list[Any],
        status: str = "pending",
        name: str = "Spring donor list",
        settings: dict | None = None,
    ):
        job = await batch_job_crud.create(
            test_async_db,
            user_id=owner,
            name=name,
            status=BatchJobStatus(status),
            total_prospects=len(items),
            settings=settings or {"delay_between_prospects_ms": 1000},
        )

        rows = []
        for index, entry in enumerate(items):
            overrides = {"status": entry} if isinstance(entry, str) else dict(entry)
            item_status = BatchItemStatus(overrides.pop("status", "pending"))
            if item_status == BatchItemStatus.PROCESSING:
                overrides.setdefault("processing_started_at", utc_now() - timedelta(minutes=1))
            prospect = {
                "name": f"Prospect {index}",
                "address": f"{100 + index} Main St",
                "city": "Springfield",
                "state": "IL",
                "zip": "62701",
            }
            rows.append({
                "job_id": job.id,
                "user_id": owner,
                "item_index": index,
                "status": item_status,
                "input_data": prospect,
                "prospect_name": prospect["name"],
                "prospect_address": prospect["address"],
                "prospect_city": prospect["city"],
                "prospect_state": prospect["state"],
                "prospect_zip": prospect["zip"],
                **overrides,
            })

        created = await batch_item_crud.bulk_create(test_async_db, rows)
        await batch_job_crud.refresh_counts(test_async_db, job.id)
        await test_async_db.commit()
        await test_async_db.refresh(job)
        return job, created

    return _make
