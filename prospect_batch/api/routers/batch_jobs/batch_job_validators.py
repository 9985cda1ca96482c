"""
Batch job validation utilities.

Request checks not covered by the Pydantic models.

Dependencies: prospect_batch.models.batch_job, prospect_batch.core.exceptions
System role: Batch job request validation
"""

from prospect_batch.core.exceptions import ValidationError
from prospect_batch.models.batch_job import CreateBatchJobRequest

MAX_PAGE_SIZE = 100
MAX_ITEM_PAGE_SIZE = 500


def validate_create_request(request: CreateBatchJobRequest) -> None:
    """
    Validate job creation request shape.

    Raises:
        ValidationError: If the name is blank or prospects are not objects
    """
    if not request.name or not request.name.strip():
        raise ValidationError("Job name is required", field="name")

    if not request.prospects:
        raise ValidationError("At least one prospect is required", field="prospects")

    if request.settings and request.settings.delay_between_prospects_ms is not None:
        if request.settings.delay_between_prospects_ms < 0:
            raise ValidationError(
                "delay_between_prospects_ms cannot be negative",
                field="settings.delay_between_prospects_ms",
            )


def validate_pagination(limit: int, offset: int, max_limit: int = MAX_PAGE_SIZE) -> None:
    """
    Validate pagination parameters.

    Raises:
        ValidationError: If limit is outside 1..max_limit or offset is negative
    """
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}", field="limit")
    if offset < 0:
        raise ValidationError("offset cannot be negative", field="offset")
