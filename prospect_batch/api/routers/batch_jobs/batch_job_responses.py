"""
Batch job response mapping utilities.

Transforms ORM models and service results into Pydantic response models.

Dependencies: prospect_batch.models.batch_job
System role: Batch job response transformation
"""

from typing import Any

from prospect_batch.application.services.batch_processor import ProcessNextResult
from prospect_batch.boundary.db.models import BatchItemModel, BatchJobModel
from prospect_batch.models.batch_job import (
    BatchItemResponse,
    BatchJobDetailResponse,
    BatchJobListResponse,
    BatchJobResponse,
    CreateBatchJobResponse,
    ItemProgress,
    JobProgressEstimate,
    ProcessNextItemResponse,
    RetryItemResponse,
)


def map_job_to_response(job: BatchJobModel) -> BatchJobResponse:
    return BatchJobResponse.model_validate(job)


def map_item_to_response(item: BatchItemModel) -> BatchItemResponse:
    return BatchItemResponse.model_validate(item)


def map_process_result(result: ProcessNextResult) -> ProcessNextItemResponse:
    """
    Transform a process-next result into the polling response.

    Args:
        result: Processor result

    Returns:
        ProcessNextItemResponse: item, job_status, progress, has_more, message
    """
    return ProcessNextItemResponse(
        item=map_item_to_response(result.item) if result.item is not None else None,
        job_status=result.job_status.value,
        progress=ItemProgress(
            completed=result.completed,
            total=result.total,
            failed=result.failed,
        ),
        has_more=result.has_more,
        message=result.message,
        strategy=result.strategy,
    )


def map_job_detail(detail: dict[str, Any]) -> BatchJobDetailResponse:
    """
    Transform a job detail dict into BatchJobDetailResponse.

    Args:
        detail: Expected keys: job, items, items_total, percentage,
            estimated_remaining_ms
    """
    return BatchJobDetailResponse(
        job=map_job_to_response(detail["job"]),
        items=[map_item_to_response(item) for item in detail["items"]],
        items_total=detail["items_total"],
        progress=JobProgressEstimate(
            percentage=detail["percentage"],
            estimated_remaining_ms=detail["estimated_remaining_ms"],
        ),
    )


def map_create_result(result: dict[str, Any]) -> CreateBatchJobResponse:
    return CreateBatchJobResponse(
        job=map_job_to_response(result["job"]),
        items_created=result["items_created"],
        duplicates_removed=result["duplicates_removed"],
        invalid_skipped=result["invalid_skipped"],
        low_quality_count=result["low_quality_count"],
        message=result["message"],
    )


def map_job_list(result: dict[str, Any]) -> BatchJobListResponse:
    return BatchJobListResponse(
        jobs=[map_job_to_response(job) for job in result["jobs"]],
        total=result["total"],
        limit=result["limit"],
        offset=result["offset"],
    )


def map_retry_result(result: dict[str, Any]) -> RetryItemResponse:
    return RetryItemResponse(
        success=result["success"],
        item=map_item_to_response(result["item"]),
        message=result["message"],
    )
