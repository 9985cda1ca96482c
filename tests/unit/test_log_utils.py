"""
Unit tests for structured logging helpers.

Dependencies: pytest, logging
System role: Logging utility verification
"""

import logging
import uuid
from datetime import datetime, timezone

import pytest

from prospect_batch.boundary.db.models import BatchItemStatus
from prospect_batch.observability.correlation import (
    clear_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from prospect_batch.observability.log_utils import (
    log_item_event,
    log_item_failure,
    mask_prospect_name,
    safe_log_value,
)
from prospect_batch.observability.logger import CorrelationIdFilter

JOB_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
ITEM_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


class TestSafeLogValue:
    """Test suite for safe_log_value."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, None),
            (27, 27),
            (True, True),
            ("Jane Doe", "Jane Doe"),
            (["a", "b"], "list(2 items)"),
            ({"name": "Jane"}, "dict(1 keys)"),
            (BatchItemStatus.FAILED, "failed"),
            (JOB_ID, "00000000-0000-0000-0000-000000000001"),
            (datetime(2024, 5, 1, tzinfo=timezone.utc), "2024-05-01T00:00:00+00:00"),
        ],
    )
    def test_values(self, value, expected):
        assert safe_log_value(value) == expected

    def test_truncates_long_strings(self):
        result = safe_log_value("x" * 20, max_length=5)

        assert result == "xxxxx... (truncated, 20 total)"


class TestMaskProspectName:
    """Test suite for mask_prospect_name."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Jane Doe", "J*** D***"),
            ("  Cher ", "C***"),
            ("", None),
            (None, None),
        ],
    )
    def test_masking(self, name, expected):
        assert mask_prospect_name(name) == expected


class TestItemLogging:
    """Test suite for the item logging helpers."""

    def test_event_carries_ids(self, caplog):
        logger = logging.getLogger("prospect_batch.tests")

        with caplog.at_level(logging.INFO, logger="prospect_batch.tests"):
            log_item_event(logger, logging.INFO, "Item processed", JOB_ID, ITEM_ID, sources=[1, 2])

        record = caplog.records[-1]
        assert record.job_id == str(JOB_ID)
        assert record.item_id == str(ITEM_ID)
        assert record.sources == "list(2 items)"

    def test_failure_carries_exception(self, caplog):
        logger = logging.getLogger("prospect_batch.tests")

        with caplog.at_level(logging.ERROR, logger="prospect_batch.tests"):
            log_item_failure(
                logger, "Research failed", TimeoutError("slow"), JOB_ID, ITEM_ID, error_code="TIMEOUT"
            )

        record = caplog.records[-1]
        assert record.error_type == "TimeoutError"
        assert record.error_msg == "slow"
        assert record.error_code == "TIMEOUT"
        assert record.exc_info[0] is TimeoutError


class TestCorrelation:
    """Test suite for correlation id propagation."""

    def test_filter_injects_correlation_id(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        set_correlation_id("req-1")
        try:
            CorrelationIdFilter().filter(record)
        finally:
            clear_correlation_id()

        assert record.correlation_id == "req-1"

    def test_filter_placeholder_outside_request(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"
        assert get_correlation_id() == ""
