"""
Batch job service orchestrator.

Coordinates job creation, listing, detail views with progress estimates,
status control (pause, resume, cancel, reset), deletion, result export and
single-item retry.

Dependencies: sqlalchemy, prospect_batch.boundary.db, prospect_batch.core.batch_processing
System role: Batch job use case orchestration
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from prospect_batch.application.services.batch_processor import build_item_context
from prospect_batch.boundary.db.base import utc_now
from prospect_batch.boundary.db.CRUD import batch_item_crud, batch_job_crud
from prospect_batch.boundary.db.models import (
    TERMINAL_JOB_STATUSES,
    BatchItemModel,
    BatchItemStatus,
    BatchJobModel,
    BatchJobStatus,
)
from prospect_batch.configs import Settings, get_settings
from prospect_batch.core.batch_processing.execution import InlineExecutionStrategy
from prospect_batch.core.batch_processing.export import ExportFile, ExportFormat, build_export
from prospect_batch.core.batch_processing.prospect import (
    AddressQuality,
    detect_duplicates,
    normalize_prospect_address,
    score_address_quality,
    validate_prospect_data,
)
from prospect_batch.core.batch_processing.research import ResearchPipeline
from prospect_batch.core.batch_processing.retry_policy import (
    calculate_estimated_time_remaining,
    calculate_percentage,
    is_retryable_item,
    resolve_delay_ms,
)
from prospect_batch.core.exceptions import (
    ActiveJobLimitError,
    BatchItemNotFoundError,
    BatchJobNotFoundError,
    InvalidStatusTransitionError,
    ItemRetryConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SETTABLE_JOB_STATUSES = frozenset({
    BatchJobStatus.PENDING,
    BatchJobStatus.PROCESSING,
    BatchJobStatus.PAUSED,
    BatchJobStatus.CANCELLED,
})

LOW_QUALITY = frozenset({AddressQuality.LOW, AddressQuality.INSUFFICIENT})


def _parse_enum(value: str, enum_type: type, field: str):
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(
            f"Invalid {field} '{value}'. Must be one of: {allowed}",
            field=field,
        ) from exc


class BatchJobService:
    """Batch job service orchestrator."""

    def __init__(
        self,
        db: AsyncSession,
        pipeline: ResearchPipeline | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize batch job service.

        Args:
            db: Async SQLAlchemy session
            pipeline: Research pipeline used by item retry
            settings: Application settings (defaults to get_settings())
        """
        self.db = db
        self.pipeline = pipeline
        self.settings = settings or get_settings()

    async def _get_job(self, job_id: UUID, user_id: str) -> BatchJobModel:
        job = await batch_job_crud.get_for_user(self.db, job_id, user_id)
        if job is None:
            raise BatchJobNotFoundError(str(job_id))
        return job

    async def create_job(
        self,
        user_id: str,
        name: str,
        prospects: list[dict[str, Any]],
        description: str | None = None,
        settings: dict[str, Any] | None = None,
        source_file_name: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a job and one pending item per valid, unique prospect.

        Args:
            user_id: Caller identity
            name: Job name (trimmed, required)
            prospects: Raw prospect rows
            description: Optional description
            settings: Per-job settings merged over defaults
            source_file_name: Uploaded file name

        Returns:
            dict: job, items_created, duplicates_removed, invalid_skipped,
                low_quality_count, message

        Raises:
            ValidationError: Empty name, empty or oversized prospect list,
                or no valid prospects
            ActiveJobLimitError: Too many active jobs for this user
        """
        batch_config = self.settings.batch
        job_name = (name or "").strip()
        if not job_name:
            raise ValidationError("Job name is required", field="name")
        if not prospects:
            raise ValidationError("At least one prospect is required", field="prospects")
        if len(prospects) > batch_config.max_prospects_per_batch:
            raise ValidationError(
                f"Maximum {batch_config.max_prospects_per_batch} prospects per batch",
                field="prospects",
                details={"submitted": len(prospects)},
            )

        active = await batch_job_crud.count_active(self.db, user_id)
        if active >= batch_config.max_concurrent_jobs_per_user:
            raise ActiveJobLimitError(
                f"Maximum {batch_config.max_concurrent_jobs_per_user} concurrent batch jobs allowed. "
                "Complete or cancel existing jobs first.",
                details={"active_jobs": active},
            )

        normalized = [normalize_prospect_address(prospect) for prospect in prospects]
        duplicates = detect_duplicates(normalized)
        duplicate_indices = set(duplicates.duplicate_indices)

        valid: list[dict[str, Any]] = []
        invalid: list[dict[str, Any]] = []
        low_quality_count = 0
        for index, prospect in enumerate(normalized):
            if index in duplicate_indices:
                continue
            errors = validate_prospect_data(prospect)
            if errors:
                invalid.append({"index": index, "errors": errors})
                continue
            if score_address_quality(prospect).quality in LOW_QUALITY:
                low_quality_count += 1
            valid.append(prospect)

        if not valid:
            raise ValidationError(
                "No valid prospects found",
                field="prospects",
                details={"invalid": invalid[:10]},
            )

        job_settings = {
            "delay_between_prospects_ms": batch_config.default_delay_between_prospects_ms,
            "enable_web_search": True,
            "generate_romy_score": True,
            **{key: value for key, value in (settings or {}).items() if value is not None},
        }

        job = await batch_job_crud.create(
            self.db,
            user_id=user_id,
            name=job_name,
            description=description,
            status=BatchJobStatus.PENDING,
            total_prospects=len(valid),
            settings=job_settings,
            source_file_name=source_file_name,
        )
        await batch_item_crud.bulk_create(
            self.db,
            [
                {
                    "job_id": job.id,
                    "user_id": user_id,
                    "item_index": index,
                    "status": BatchItemStatus.PENDING,
                    "input_data": prospect,
                    "prospect_name": prospect.get("name"),
                    "prospect_address": prospect.get("address") or prospect.get("full_address"),
                    "prospect_city": prospect.get("city"),
                    "prospect_state": prospect.get("state"),
                    "prospect_zip": prospect.get("zip"),
                }
                for index, prospect in enumerate(valid)
            ],
        )
        await self.db.commit()

        logger.info(
            "Batch job created",
            extra={
                "job_id": str(job.id),
                "user_id": user_id,
                "items_created": len(valid),
                "duplicates_removed": duplicates.duplicate_count,
                "invalid_skipped": len(invalid),
            },
        )

        message = f"Created batch job with {len(valid)} prospects"
        if duplicates.duplicate_count:
            message += f" ({duplicates.duplicate_count} duplicates removed)"
        if invalid:
            message += f" ({len(invalid)} invalid rows skipped)"

        return {
            "job": job,
            "items_created": len(valid),
            "duplicates_removed": duplicates.duplicate_count,
            "invalid_skipped": len(invalid),
            "low_quality_count": low_quality_count,
            "message": message,
        }

    async def list_jobs(
        self,
        user_id: str,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """
        List the caller's jobs.

        Returns:
            dict: jobs, total, limit, offset
        """
        status_filter = _parse_enum(status, BatchJobStatus, "status") if status else None
        jobs, total = await batch_job_crud.list_for_user(
            self.db, user_id, status=status_filter, limit=limit, offset=offset
        )
        return {"jobs": list(jobs), "total": total, "limit": limit, "offset": offset}

    async def get_job_detail(
        self,
        job_id: UUID,
        user_id: str,
        include_items: bool = True,
        item_status: str | None = None,
        item_limit: int = 100,
        item_offset: int = 0,
    ) -> dict[str, Any]:
        """
        Get a job with a page of its items and a progress estimate.

        Returns:
            dict: job, items, items_total, percentage, estimated_remaining_ms

        Raises:
            BatchJobNotFoundError: If the job does not exist for this user
        """
        job = await self._get_job(job_id, user_id)

        items: list[BatchItemModel] = []
        items_total = 0
        if include_items:
            status_filter = (
                _parse_enum(item_status, BatchItemStatus, "item_status") if item_status else None
            )
            page, items_total = await batch_item_crud.list_for_job(
                self.db,
                job_id,
                user_id,
                status=status_filter,
                limit=item_limit,
                offset=item_offset,
            )
            items = list(page)

        batch_config = self.settings.batch
        remaining = job.total_prospects - job.completed_count - job.failed_count - job.skipped_count
        delay_ms = resolve_delay_ms(
            job.settings,
            default_ms=batch_config.default_delay_between_prospects_ms,
            min_ms=batch_config.min_delay_between_prospects_ms,
            max_ms=batch_config.max_delay_between_prospects_ms,
        )

        return {
            "job": job,
            "items": items,
            "items_total": items_total,
            "percentage": calculate_percentage(job.completed_count, job.total_prospects),
            "estimated_remaining_ms": calculate_estimated_time_remaining(
                remaining,
                delay_ms,
                batch_config.estimated_seconds_per_prospect,
            ),
        }

    async def update_status(self, job_id: UUID, user_id: str, status: str) -> BatchJobModel:
        """
        Change a job's status.

        Terminal jobs (completed, failed, cancelled) only accept a reset to
        pending, which also returns every non-completed item to pending.

        Args:
            job_id: Job UUID
            user_id: Caller identity
            status: Requested status

        Returns:
            BatchJobModel: Updated job

        Raises:
            ValidationError: If the requested status cannot be set by callers
            InvalidStatusTransitionError: If the job is terminal and the
                request is not a reset, or the job changed status after it
                was read
            BatchJobNotFoundError: If the job does not exist for this user
        """
        requested = _parse_enum(status, BatchJobStatus, "status")
        if requested not in SETTABLE_JOB_STATUSES:
            allowed = ", ".join(sorted(s.value for s in SETTABLE_JOB_STATUSES))
            raise ValidationError(f"Invalid status. Must be one of: {allowed}", field="status")

        job = await self._get_job(job_id, user_id)
        current = job.status

        if current in TERMINAL_JOB_STATUSES:
            if requested != BatchJobStatus.PENDING:
                raise InvalidStatusTransitionError(current.value, requested.value)

            if await batch_job_crud.reset_to_pending(self.db, job_id, from_status=current) is None:
                await self._raise_status_changed(job, requested)
            reset_items = await batch_item_crud.reset_unfinished(self.db, job_id)
            await batch_job_crud.refresh_counts(self.db, job_id)
            await self.db.commit()
            await self.db.refresh(job)

            logger.info(
                "Batch job reset",
                extra={"job_id": str(job_id), "from_status": current.value, "items_reset": reset_items},
            )
            return job

        fields: dict[str, Any] = {}
        if requested == BatchJobStatus.PROCESSING and job.started_at is None:
            fields["started_at"] = utc_now()

        updated = await batch_job_crud.update_status(
            self.db, job_id, requested, from_status=current, **fields
        )
        if updated is None:
            await self._raise_status_changed(job, requested)
        await self.db.commit()
        await self.db.refresh(job)

        logger.info(
            "Batch job status changed",
            extra={"job_id": str(job_id), "from_status": current.value, "to_status": requested.value},
        )
        return job

    async def _raise_status_changed(self, job: BatchJobModel, requested: BatchJobStatus) -> None:
        # The job moved (e.g. finalized by process-next) after it was read
        await self.db.rollback()
        await self.db.refresh(job)
        logger.info(
            "Batch job status changed concurrently",
            extra={"job_id": str(job.id), "status": job.status.value, "requested": requested.value},
        )
        raise InvalidStatusTransitionError(
            job.status.value,
            requested.value,
            message=f"Job changed to {job.status.value} while updating, reload and try again",
        )

    async def delete_job(self, job_id: UUID, user_id: str) -> None:
        """
        Delete a job and all of its items.

        Raises:
            BatchJobNotFoundError: If the job does not exist for this user
        """
        deleted = await batch_job_crud.delete_for_user(self.db, job_id, user_id)
        if not deleted:
            await self.db.rollback()
            raise BatchJobNotFoundError(str(job_id))
        await self.db.commit()
        logger.info("Batch job deleted", extra={"job_id": str(job_id), "user_id": user_id})

    async def export_job(
        self,
        job_id: UUID,
        user_id: str,
        export_format: str = "csv",
        include_reports: bool = False,
    ) -> ExportFile:
        """
        Export a job's completed items.

        Args:
            job_id: Job UUID
            user_id: Caller identity
            export_format: "csv" or "json"
            include_reports: Include full report content

        Returns:
            ExportFile: Rendered download

        Raises:
            ValidationError: Unsupported format, or no completed items yet
            BatchJobNotFoundError: If the job does not exist for this user
        """
        fmt = _parse_enum(export_format, ExportFormat, "format")
        job = await self._get_job(job_id, user_id)

        items = await batch_item_crud.list_completed(self.db, job_id, user_id)
        if not items:
            raise ValidationError("No completed items to export", field="job_id")

        export = build_export(job, items, fmt, include_reports=include_reports)
        logger.info(
            "Batch job exported",
            extra={
                "job_id": str(job_id),
                "format": fmt.value,
                "items": len(items),
                "include_reports": include_reports,
            },
        )
        return export

    async def retry_item(self, job_id: UUID, item_id: UUID, user_id: str) -> dict[str, Any]:
        """
        Retry one item immediately, inline.

        The item is claimed through the same compare-and-swap protocol as
        process-next, so a concurrent process-next cannot run it twice.

        Returns:
            dict: success, item, message

        Raises:
            BatchJobNotFoundError: If the job does not exist for this user
            BatchItemNotFoundError: If the item is not part of the job
            ItemRetryConflictError: If the item is completed, processing, or
                was claimed concurrently
            ValidationError: If the item reached the retry ceiling
        """
        if self.pipeline is None:
            raise RuntimeError("BatchJobService.retry_item requires a research pipeline")

        job = await self._get_job(job_id, user_id)
        item = await batch_item_crud.get_for_job(self.db, item_id, job_id, user_id)
        if item is None:
            raise BatchItemNotFoundError(str(item_id))

        if item.status == BatchItemStatus.COMPLETED:
            raise ItemRetryConflictError("Item already completed", details={"item_id": str(item_id)})
        if item.status == BatchItemStatus.PROCESSING:
            raise ItemRetryConflictError(
                "Item is currently being processed", details={"item_id": str(item_id)}
            )

        max_retries = self.settings.batch.max_retries_per_prospect
        if item.status == BatchItemStatus.FAILED and not is_retryable_item(item.retry_count, max_retries):
            raise ValidationError(
                f"Maximum retry limit reached ({max_retries} retries)",
                field="retry_count",
                details={"retry_count": item.retry_count},
            )

        claimed_at = utc_now()
        claimed = await batch_item_crud.claim(
            self.db,
            item_id,
            observed_status=item.status,
            started_at=claimed_at,
            max_retries=max_retries,
        )
        await self.db.commit()
        if claimed is None:
            raise ItemRetryConflictError(
                "Item was claimed by another worker", details={"item_id": str(item_id)}
            )

        strategy = InlineExecutionStrategy(
            self.pipeline,
            timeout_seconds=self.settings.batch.prospect_processing_timeout_ms / 1000,
        )
        outcome = await strategy.execute(self.db, build_item_context(job, claimed, user_id, claimed_at))
        await self.db.refresh(claimed)

        return {
            "success": outcome.success,
            "item": claimed,
            "message": (
                "Item processed successfully"
                if outcome.success
                else f"Retry failed: {outcome.error_message}"
            ),
        }
