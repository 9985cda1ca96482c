"""
Batch error classification.

Maps exceptions raised during enrichment to a small taxonomy with a
user-facing message and retry hints. Only the user message is persisted on
the item; retry eligibility is governed by the retry policy.

Dependencies: pydantic
System role: Error taxonomy for item failures
"""

import asyncio
from enum import Enum

from pydantic import BaseModel, Field

from prospect_batch.core.exceptions import ValidationError


class BatchErrorCode(str, Enum):
    """Classified failure kinds."""

    SEARCH_UNAVAILABLE = "SEARCH_UNAVAILABLE"
    SEARCH_RATE_LIMITED = "SEARCH_RATE_LIMITED"
    SEARCH_TIMEOUT = "SEARCH_TIMEOUT"
    AI_ERROR = "AI_ERROR"
    AI_RATE_LIMITED = "AI_RATE_LIMITED"
    INVALID_INPUT = "INVALID_INPUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ClassifiedError(BaseModel):
    """Classification result for one enrichment failure."""

    code: BatchErrorCode
    message: str = Field(description="Original error text for operators")
    user_message: str = Field(description="Message stored on the item and shown to users")
    retryable: bool
    retry_after_ms: int | None = None


def _has_any(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


def classify_batch_error(error: BaseException | str) -> ClassifiedError:
    """
    Classify an error for handling and user messaging.

    Args:
        error: Exception raised by the pipeline (or a bare message)

    Returns:
        ClassifiedError: Code, messages and retry hints
    """
    message = str(error) if str(error) else type(error).__name__
    lower = message.lower()

    if isinstance(error, ValidationError):
        return ClassifiedError(
            code=BatchErrorCode.INVALID_INPUT,
            message=message,
            user_message="Prospect data is incomplete. Add a name and address and retry.",
            retryable=False,
        )

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return ClassifiedError(
            code=BatchErrorCode.TIMEOUT,
            message=message,
            user_message="Request timed out. Will retry automatically.",
            retryable=True,
            retry_after_ms=5000,
        )

    if _has_any(lower, "search api", "web search", "linkup"):
        if _has_any(lower, "rate limit", "429"):
            return ClassifiedError(
                code=BatchErrorCode.SEARCH_RATE_LIMITED,
                message=message,
                user_message="Search API rate limit reached. Will retry automatically.",
                retryable=True,
                retry_after_ms=60_000,
            )
        if _has_any(lower, "timeout", "timed out"):
            return ClassifiedError(
                code=BatchErrorCode.SEARCH_TIMEOUT,
                message=message,
                user_message="Search request timed out. Will retry automatically.",
                retryable=True,
                retry_after_ms=5000,
            )
        if _has_any(lower, "not configured", "not available"):
            return ClassifiedError(
                code=BatchErrorCode.SEARCH_UNAVAILABLE,
                message=message,
                user_message="Web search is not configured. Please check your API keys.",
                retryable=False,
            )

    if _has_any(lower, "gemini", "generativelanguage", "openrouter", "<!doctype", "<html"):
        if _has_any(lower, "rate limit", "429", "resource exhausted", "quota"):
            return ClassifiedError(
                code=BatchErrorCode.AI_RATE_LIMITED,
                message=message,
                user_message="AI service rate limit reached. Will retry automatically.",
                retryable=True,
                retry_after_ms=30_000,
            )
        return ClassifiedError(
            code=BatchErrorCode.AI_ERROR,
            message="AI service returned an error",
            user_message="AI service temporarily unavailable. Will retry automatically.",
            retryable=True,
            retry_after_ms=10_000,
        )

    if isinstance(error, ConnectionError) or _has_any(
        lower, "network", "fetch", "econnrefused", "enotfound", "connection refused"
    ):
        return ClassifiedError(
            code=BatchErrorCode.NETWORK_ERROR,
            message=message,
            user_message="Network error occurred. Will retry automatically.",
            retryable=True,
            retry_after_ms=5000,
        )

    if _has_any(lower, "timeout", "timed out"):
        return ClassifiedError(
            code=BatchErrorCode.TIMEOUT,
            message=message,
            user_message="Request timed out. Will retry automatically.",
            retryable=True,
            retry_after_ms=5000,
        )

    if _has_any(lower, "database", "postgres", "sqlalchemy"):
        return ClassifiedError(
            code=BatchErrorCode.DATABASE_ERROR,
            message=message,
            user_message="Database error occurred. Please try again.",
            retryable=True,
            retry_after_ms=2000,
        )

    return ClassifiedError(
        code=BatchErrorCode.UNKNOWN_ERROR,
        message=message,
        user_message="An unexpected error occurred. Will retry automatically.",
        retryable=True,
        retry_after_ms=5000,
    )
