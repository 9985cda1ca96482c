"""
Unit tests for batch error classification.

Dependencies: pytest
System role: Error taxonomy verification
"""

import asyncio

import pytest

from prospect_batch.core.batch_processing.error_classifier import (
    BatchErrorCode,
    classify_batch_error,
)
from prospect_batch.core.exceptions import ValidationError


class TestClassifyBatchError:
    """Test suite for classify_batch_error."""

    def test_validation_error_is_invalid_input(self):
        result = classify_batch_error(ValidationError("Name is required", field="prospect"))

        assert result.code == BatchErrorCode.INVALID_INPUT
        assert result.retryable is False
        assert "name and address" in result.user_message

    def test_asyncio_timeout(self):
        result = classify_batch_error(asyncio.TimeoutError())

        assert result.code == BatchErrorCode.TIMEOUT
        assert result.retryable is True
        assert result.retry_after_ms == 5000
        # Empty exception text falls back to the type name
        assert result.message == "TimeoutError"

    @pytest.mark.parametrize(
        "message,code",
        [
            ("Web search returned 429 rate limit", BatchErrorCode.SEARCH_RATE_LIMITED),
            ("Search API request timed out", BatchErrorCode.SEARCH_TIMEOUT),
            ("LinkUp search API not configured", BatchErrorCode.SEARCH_UNAVAILABLE),
            ("Gemini 429 resource exhausted", BatchErrorCode.AI_RATE_LIMITED),
            ("<!DOCTYPE html><html>Bad gateway", BatchErrorCode.AI_ERROR),
            ("connect ECONNREFUSED 10.0.0.1:443", BatchErrorCode.NETWORK_ERROR),
            ("Operation timed out after 120s", BatchErrorCode.TIMEOUT),
            ("postgres connection slot exhausted", BatchErrorCode.DATABASE_ERROR),
            ("something odd happened", BatchErrorCode.UNKNOWN_ERROR),
        ],
    )
    def test_message_patterns(self, message, code):
        assert classify_batch_error(RuntimeError(message)).code == code

    def test_search_unavailable_is_not_retryable(self):
        result = classify_batch_error("web search not available")

        assert result.code == BatchErrorCode.SEARCH_UNAVAILABLE
        assert result.retryable is False

    def test_ai_error_hides_raw_html(self):
        result = classify_batch_error(RuntimeError("<html><body>502</body></html> from gemini"))

        assert result.code == BatchErrorCode.AI_ERROR
        assert result.message == "AI service returned an error"

    def test_connection_error_type(self):
        result = classify_batch_error(ConnectionResetError("peer reset"))

        assert result.code == BatchErrorCode.NETWORK_ERROR

    def test_unknown_is_retryable(self):
        result = classify_batch_error(KeyError("missing"))

        assert result.code == BatchErrorCode.UNKNOWN_ERROR
        assert result.retryable is True
        assert result.user_message == "An unexpected error occurred. Will retry automatically."
