"""
Batch job API endpoints.

Routes:
- POST /batch-jobs - Create a job from prospect rows
- GET /batch-jobs - List the caller's jobs
- GET /batch-jobs/{job_id} - Job detail with items and progress estimate
- PATCH /batch-jobs/{job_id} - Pause, resume, cancel or reset a job
- DELETE /batch-jobs/{job_id} - Delete a job and its items
- GET /batch-jobs/{job_id}/export - Download completed results as CSV or JSON
- POST /batch-jobs/{job_id}/process - Process the next item
- POST /batch-jobs/{job_id}/items/{item_id}/retry - Retry one item inline

Dependencies: prospect_batch.application.services, prospect_batch.models
System role: Batch prospect research HTTP API
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response

from prospect_batch.api.deps.dependencies import (
    get_batch_job_service,
    get_batch_processor,
    get_current_user_id,
)
from prospect_batch.application.services.batch_job_service import BatchJobService
from prospect_batch.application.services.batch_processor import BatchProcessor
from prospect_batch.models.batch_job import (
    BatchJobDetailResponse,
    BatchJobListResponse,
    BatchJobResponse,
    CreateBatchJobRequest,
    CreateBatchJobResponse,
    ProcessNextItemResponse,
    RetryItemResponse,
    UpdateBatchJobRequest,
)
from prospect_batch.models.common import MessageResponse

from .batch_job_error_handling import handle_batch_errors
from .batch_job_responses import (
    map_create_result,
    map_job_detail,
    map_job_list,
    map_job_to_response,
    map_process_result,
    map_retry_result,
)
from .batch_job_validators import (
    MAX_ITEM_PAGE_SIZE,
    validate_create_request,
    validate_pagination,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/batch-jobs", tags=["batch-jobs"])


@router.post("", response_model=CreateBatchJobResponse, status_code=201)
@handle_batch_errors
async def create_batch_job(
    request: CreateBatchJobRequest,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> CreateBatchJobResponse:
    """
    Create a batch job.

    Raises:
        HTTPException(400): Invalid name, prospects, or no valid prospects
        HTTPException(429): Too many active jobs
    """
    validate_create_request(request)

    result = await service.create_job(
        user_id=user_id,
        name=request.name,
        prospects=request.prospects,
        description=request.description,
        settings=request.settings.model_dump(exclude_none=True) if request.settings else None,
        source_file_name=request.source_file_name,
    )
    return map_create_result(result)


@router.get("", response_model=BatchJobListResponse)
@handle_batch_errors
async def list_batch_jobs(
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> BatchJobListResponse:
    """List the caller's batch jobs, newest first."""
    validate_pagination(limit, offset)
    result = await service.list_jobs(user_id, status=status, limit=limit, offset=offset)
    return map_job_list(result)


@router.get("/{job_id}", response_model=BatchJobDetailResponse)
@handle_batch_errors
async def get_batch_job(
    job_id: UUID,
    include_items: bool = True,
    item_status: str | None = None,
    item_limit: int = 100,
    item_offset: int = 0,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> BatchJobDetailResponse:
    """
    Get a job with a page of items and a progress estimate.

    Raises:
        HTTPException(404): Job not found for this user
    """
    validate_pagination(item_limit, item_offset, max_limit=MAX_ITEM_PAGE_SIZE)
    detail = await service.get_job_detail(
        job_id,
        user_id,
        include_items=include_items,
        item_status=item_status,
        item_limit=item_limit,
        item_offset=item_offset,
    )
    return map_job_detail(detail)


@router.patch("/{job_id}", response_model=BatchJobResponse)
@handle_batch_errors
async def update_batch_job(
    job_id: UUID,
    request: UpdateBatchJobRequest,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> BatchJobResponse:
    """
    Change a job's status.

    Raises:
        HTTPException(400): Invalid status or transition out of a terminal state
        HTTPException(404): Job not found for this user
    """
    logger.info(
        "Updating batch job status",
        extra={"job_id": str(job_id), "requested_status": request.status},
    )
    job = await service.update_status(job_id, user_id, request.status)
    return map_job_to_response(job)


@router.delete("/{job_id}", response_model=MessageResponse)
@handle_batch_errors
async def delete_batch_job(
    job_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> MessageResponse:
    """
    Delete a job and its items.

    Raises:
        HTTPException(404): Job not found for this user
    """
    await service.delete_job(job_id, user_id)
    return MessageResponse(message="Batch job deleted")


@router.get("/{job_id}/export")
@handle_batch_errors
async def export_batch_job(
    job_id: UUID,
    export_format: str = Query(default="csv", alias="format"),
    include_reports: bool = False,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> Response:
    """
    Download a job's completed results.

    Raises:
        HTTPException(400): Unsupported format or nothing completed yet
        HTTPException(404): Job not found for this user
    """
    export = await service.export_job(
        job_id,
        user_id,
        export_format=export_format,
        include_reports=include_reports,
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{export.filename}"',
            "Cache-Control": "no-store",
        },
    )


@router.post("/{job_id}/process", response_model=ProcessNextItemResponse)
@handle_batch_errors
async def process_next_item(
    job_id: UUID,
    user_id: str = Depends(get_current_user_id),
    processor: BatchProcessor = Depends(get_batch_processor),
) -> ProcessNextItemResponse:
    """
    Process the next item of a job.

    Callers poll this endpoint until has_more is false.

    Raises:
        HTTPException(404): Job not found for this user
        HTTPException(503): Store unavailable
    """
    result = await processor.process_next(job_id, user_id)
    return map_process_result(result)


@router.post("/{job_id}/items/{item_id}/retry", response_model=RetryItemResponse)
@handle_batch_errors
async def retry_batch_item(
    job_id: UUID,
    item_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: BatchJobService = Depends(get_batch_job_service),
) -> RetryItemResponse:
    """
    Retry one item immediately.

    Raises:
        HTTPException(400): Retry limit reached
        HTTPException(404): Job or item not found
        HTTPException(409): Item completed, processing, or claimed concurrently
    """
    result = await service.retry_item(job_id, item_id, user_id)
    return map_retry_result(result)
