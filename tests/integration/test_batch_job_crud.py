"""
Integration tests for BatchJobCRUD and the generic BaseCRUD operations.

Dependencies: pytest, sqlalchemy, aiosqlite
System role: Job aggregate persistence verification
"""

import uuid
from datetime import timedelta

from prospect_batch.boundary.db.base import utc_now
from prospect_batch.boundary.db.CRUD import batch_item_crud, batch_job_crud
from prospect_batch.boundary.db.models import BatchJobModel, BatchJobStatus


class TestBaseOperations:
    """Test suite for inherited BaseCRUD operations."""

    async def test_create_loads_defaults(self, test_async_db, user_id):
        job = await batch_job_crud.create(
            test_async_db,
            user_id=user_id,
            name="Gala invitees",
            total_prospects=0,
            settings={},
        )
        await test_async_db.commit()

        fetched = await batch_job_crud.get_for_user(test_async_db, job.id, user_id)

        assert fetched is not None
        assert fetched.status == BatchJobStatus.PENDING
        assert fetched.created_at is not None

    async def test_get_missing(self, test_async_db, user_id):
        assert await batch_job_crud.get_for_user(test_async_db, uuid.uuid4(), user_id) is None

    async def test_count_where(self, test_async_db, make_job, user_id):
        await make_job(user_id, ["pending"], status="paused")
        await make_job(user_id, ["pending"])

        paused = await batch_job_crud.count_where(
            test_async_db,
            BatchJobModel.user_id == user_id,
            BatchJobModel.status == BatchJobStatus.PAUSED,
        )

        assert paused == 1


class TestOwnerScopedQueries:
    """Test suite for owner-scoped reads."""

    async def test_get_for_user(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["pending"])

        assert (await batch_job_crud.get_for_user(test_async_db, job.id, user_id)).id == job.id
        assert await batch_job_crud.get_for_user(test_async_db, job.id, "intruder") is None

    async def test_list_for_user_filters_and_counts(self, test_async_db, make_job, user_id):
        await make_job(user_id, ["pending"], name="first")
        await make_job(user_id, ["completed"], status="completed", name="second")
        await make_job("another-user", ["pending"], name="theirs")

        jobs, total = await batch_job_crud.list_for_user(test_async_db, user_id)
        completed, completed_total = await batch_job_crud.list_for_user(
            test_async_db, user_id, status=BatchJobStatus.COMPLETED
        )

        assert total == 2
        assert {job.name for job in jobs} == {"first", "second"}
        assert completed_total == 1
        assert completed[0].name == "second"

    async def test_count_active(self, test_async_db, make_job, user_id):
        await make_job(user_id, ["pending"], status="pending")
        await make_job(user_id, ["pending"], status="paused")
        await make_job(user_id, ["completed"], status="completed")
        await make_job(user_id, ["pending"], status="cancelled")

        assert await batch_job_crud.count_active(test_async_db, user_id) == 2


class TestTransitions:
    """Test suite for conditional status transitions."""

    async def test_mark_processing_once(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["pending"])
        started = utc_now()

        first = await batch_job_crud.mark_processing(test_async_db, job.id, started)
        second = await batch_job_crud.mark_processing(test_async_db, job.id, started + timedelta(seconds=5))
        await test_async_db.commit()
        await test_async_db.refresh(job)

        assert (first, second) == (True, False)
        assert job.status == BatchJobStatus.PROCESSING
        assert job.started_at is not None

    async def test_finalize_has_single_winner(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["completed"], status="processing")

        winner = await batch_job_crud.finalize_completed(test_async_db, job.id, utc_now())
        loser = await batch_job_crud.finalize_completed(test_async_db, job.id, utc_now())

        assert winner is not None
        assert winner.status == BatchJobStatus.COMPLETED
        assert loser is None

    async def test_finalize_ignores_paused_job(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["completed"], status="paused")

        assert await batch_job_crud.finalize_completed(test_async_db, job.id, utc_now()) is None

    async def test_refresh_counts_from_items(self, test_async_db, make_job, user_id):
        job, items = await make_job(user_id, ["pending", "pending", "failed"])
        claimed_at = utc_now()
        await batch_item_crud.claim(
            test_async_db, items[0].id, items[0].status, claimed_at, max_retries=3
        )
        await batch_item_crud.record_success(
            test_async_db, items[0].id, claimed_at=claimed_at, completed_at=utc_now(), duration_ms=5
        )

        await batch_job_crud.refresh_counts(test_async_db, job.id)
        await test_async_db.commit()
        await test_async_db.refresh(job)

        assert job.completed_count == 1
        assert job.failed_count == 1

    async def test_reset_to_pending_clears_timestamps(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["completed"], status="completed")
        await batch_job_crud.update_status(
            test_async_db, job.id, BatchJobStatus.COMPLETED, started_at=utc_now(), completed_at=utc_now()
        )

        await batch_job_crud.reset_to_pending(test_async_db, job.id, from_status=BatchJobStatus.COMPLETED)
        await test_async_db.commit()
        await test_async_db.refresh(job)

        assert job.status == BatchJobStatus.PENDING
        assert job.started_at is None
        assert job.completed_at is None

    async def test_update_status_requires_observed_status(self, test_async_db, make_job, user_id):
        """A job finalized after the caller read it is not moved."""
        job, _ = await make_job(user_id, ["completed"], status="completed")

        updated = await batch_job_crud.update_status(
            test_async_db, job.id, BatchJobStatus.PAUSED, from_status=BatchJobStatus.PROCESSING
        )
        await test_async_db.commit()
        await test_async_db.refresh(job)

        assert updated is None
        assert job.status == BatchJobStatus.COMPLETED

    async def test_reset_requires_observed_status(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["completed"], status="failed")

        reset = await batch_job_crud.reset_to_pending(
            test_async_db, job.id, from_status=BatchJobStatus.CANCELLED
        )

        assert reset is None


class TestDeleteForUser:
    """Test suite for owner-scoped deletion."""

    async def test_deletes_job_and_items(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["pending", "completed"])

        deleted = await batch_job_crud.delete_for_user(test_async_db, job.id, user_id)
        await test_async_db.commit()

        assert deleted is True
        assert await batch_job_crud.get_for_user(test_async_db, job.id, user_id) is None
        counts = await batch_item_crud.count_by_status(test_async_db, job.id)
        assert sum(counts.values()) == 0

    async def test_other_users_job_is_untouched(self, test_async_db, make_job, user_id):
        job, _ = await make_job(user_id, ["pending"])

        assert await batch_job_crud.delete_for_user(test_async_db, job.id, "intruder") is False
        assert await batch_job_crud.get_for_user(test_async_db, job.id, user_id) is not None
