"""
Batch processing policy and execution.

Exports:
  - retry/staleness policy helpers
  - classify_batch_error, ClassifiedError
  - prospect normalization and validation
"""

from prospect_batch.core.batch_processing.error_classifier import (
    BatchErrorCode,
    ClassifiedError,
    classify_batch_error,
)
from prospect_batch.core.batch_processing.prospect import (
    AddressQuality,
    ProspectInput,
    detect_duplicates,
    merge_item_input,
    normalize_prospect_address,
    score_address_quality,
    validate_prospect_data,
)
from prospect_batch.core.batch_processing.retry_policy import (
    calculate_estimated_time_remaining,
    calculate_percentage,
    is_retryable_item,
    resolve_delay_ms,
    stale_cutoff,
)

__all__ = [
    "AddressQuality",
    "BatchErrorCode",
    "ClassifiedError",
    "ProspectInput",
    "calculate_estimated_time_remaining",
    "calculate_percentage",
    "classify_batch_error",
    "detect_duplicates",
    "is_retryable_item",
    "merge_item_input",
    "normalize_prospect_address",
    "resolve_delay_ms",
    "score_address_quality",
    "stale_cutoff",
    "validate_prospect_data",
]
