"""
Unit tests for retry and staleness policy.

Tests retry eligibility, the stale cutoff (naive and aware timestamps),
delay clamping, remaining-time estimates and percentage rounding.

Dependencies: pytest
System role: Scheduling policy verification
"""

from datetime import datetime, timedelta, timezone

import pytest

from prospect_batch.core.batch_processing.retry_policy import (
    calculate_estimated_time_remaining,
    calculate_percentage,
    is_retryable_item,
    resolve_delay_ms,
    stale_cutoff,
)

TEN_MINUTES_MS = 10 * 60 * 1000
NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestIsRetryableItem:
    """Test suite for retry eligibility."""

    @pytest.mark.parametrize(
        "retry_count,expected",
        [(0, True), (2, True), (3, False), (7, False)],
    )
    def test_eligibility_depends_on_retry_count_only(self, retry_count, expected):
        assert is_retryable_item(retry_count, max_retries=3) is expected

    def test_zero_ceiling_never_retries(self):
        assert is_retryable_item(0, max_retries=0) is False


class TestStaleness:
    """Test suite for stale processing detection."""

    def test_cutoff_is_now_minus_threshold(self):
        assert stale_cutoff(NOW, TEN_MINUTES_MS) == NOW - timedelta(minutes=10)

    def test_naive_now_is_treated_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)

        assert stale_cutoff(naive_now, TEN_MINUTES_MS) == NOW - timedelta(minutes=10)


class TestResolveDelay:
    """Test suite for per-job delay resolution."""

    def test_uses_job_setting(self):
        assert resolve_delay_ms({"delay_between_prospects_ms": 2000}, 1000, 500, 30_000) == 2000

    def test_falls_back_to_default(self):
        assert resolve_delay_ms({}, 1000, 500, 30_000) == 1000
        assert resolve_delay_ms(None, 1000, 500, 30_000) == 1000

    def test_clamps_to_bounds(self):
        assert resolve_delay_ms({"delay_between_prospects_ms": 10}, 1000, 500, 30_000) == 500
        assert resolve_delay_ms({"delay_between_prospects_ms": 90_000}, 1000, 500, 30_000) == 30_000

    def test_unparseable_value_uses_default(self):
        assert resolve_delay_ms({"delay_between_prospects_ms": "soon"}, 1000, 500, 30_000) == 1000


class TestEstimates:
    """Test suite for progress estimates."""

    def test_remaining_time(self):
        # 4 prospects * 30s + 4 * 1000ms delay
        assert calculate_estimated_time_remaining(4, 1000, 30) == 124_000

    def test_remaining_time_never_negative(self):
        assert calculate_estimated_time_remaining(-2, 1000, 30) == 0

    @pytest.mark.parametrize(
        "completed,total,expected",
        [(0, 0, 0), (0, 10, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 200, 1), (5, 5, 100)],
    )
    def test_percentage_rounds_half_up(self, completed, total, expected):
        assert calculate_percentage(completed, total) == expected
