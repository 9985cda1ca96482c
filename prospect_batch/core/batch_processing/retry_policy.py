"""
Retry and staleness policy.

Pure functions deciding when a failed item may be retried, when a processing
item is presumed abandoned, and how long the rest of a job should take.

Dependencies: datetime, math (stdlib)
System role: Scheduling policy for the batch processor
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping


def is_retryable_item(retry_count: int, max_retries: int) -> bool:
    """
    Decide retry eligibility for a failed item.

    Eligibility depends on the attempt count only; the classified error's
    ``retryable`` flag is informational.

    Args:
        retry_count: Retries already consumed by the item
        max_retries: Process-wide retry ceiling

    Returns:
        bool: True if the item may be claimed again
    """
    return retry_count < max_retries


def _as_utc(value: datetime) -> datetime:
    # naive datetimes are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def stale_cutoff(now: datetime, threshold_ms: int) -> datetime:
    """
    Oldest ``processing_started_at`` still considered alive.

    Args:
        now: Current time
        threshold_ms: Staleness threshold in milliseconds

    Returns:
        datetime: Items started before this instant are stale
    """
    return _as_utc(now) - timedelta(milliseconds=threshold_ms)


def resolve_delay_ms(
    job_settings: Mapping[str, Any] | None,
    default_ms: int,
    min_ms: int,
    max_ms: int,
) -> int:
    """
    Delay between prospects for a job, clamped to the allowed range.

    Args:
        job_settings: Job ``settings`` JSON (may carry delay_between_prospects_ms)
        default_ms: Global default delay
        min_ms: Lower bound
        max_ms: Upper bound

    Returns:
        int: Effective delay in milliseconds
    """
    raw = (job_settings or {}).get("delay_between_prospects_ms")
    try:
        delay = int(raw) if raw is not None else default_ms
    except (TypeError, ValueError):
        delay = default_ms
    return max(min_ms, min(delay, max_ms))


def calculate_estimated_time_remaining(
    remaining_prospects: int,
    delay_ms: int,
    seconds_per_prospect: int,
) -> int:
    """
    Estimate milliseconds left for a job.

    Args:
        remaining_prospects: Items not yet completed, failed or skipped
        delay_ms: Pause between prospects
        seconds_per_prospect: Average enrichment time

    Returns:
        int: Estimated remaining time in milliseconds
    """
    remaining = max(remaining_prospects, 0)
    return remaining * seconds_per_prospect * 1000 + remaining * delay_ms


def calculate_percentage(completed: int, total: int) -> int:
    """Completed share of a job as a percentage, rounding halves up."""
    if total <= 0:
        return 0
    return math.floor(completed / total * 100 + 0.5)
