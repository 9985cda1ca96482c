"""
Structured logging helpers for batch item events.

Every item log line carries job_id and item_id so a single prospect can
be followed across API calls and worker processes. Prospect names are
donor PII and are masked before they reach a log record.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
import uuid
from datetime import datetime
from typing import Any


def safe_log_value(value: Any, max_length: int = 200) -> Any:
    """
    Convert a value into something safe to attach to a log record.

    Numbers and booleans pass through; ids, enums and timestamps become
    strings; collections are summarized; long strings are truncated.

    Args:
        value: Value to convert
        max_length: Maximum string length before truncating

    Returns:
        Log-safe value
    """
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, enum.Enum):
        return safe_log_value(value.value, max_length)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return f"{type(value).__name__}({len(value)} items)"
    if isinstance(value, dict):
        return f"dict({len(value)} keys)"

    text = str(value)
    if len(text) > max_length:
        return text[:max_length] + f"... (truncated, {len(text)} total)"
    return text


def mask_prospect_name(name: str | None) -> str | None:
    """
    Mask a prospect name for logging: "Jane Doe" -> "J*** D***".
    """
    if not name or not name.strip():
        return None
    return " ".join(f"{part[0]}***" for part in name.split())


def log_item_event(
    logger: logging.Logger,
    level: int,
    message: str,
    job_id: Any,
    item_id: Any,
    **context: Any,
) -> None:
    """
    Log an event for one batch item.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        job_id: Owning job
        item_id: Work item
        **context: Additional structured fields
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra["job_id"] = safe_log_value(job_id)
    extra["item_id"] = safe_log_value(item_id)
    logger.log(level, message, extra=extra)


def log_item_failure(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    job_id: Any,
    item_id: Any,
    **context: Any,
) -> None:
    """
    Log a failed item attempt with the exception attached.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception raised by the attempt
        job_id: Owning job
        item_id: Work item
        **context: Additional structured fields
    """
    extra = {key: safe_log_value(val) for key, val in context.items()}
    extra.update({
        "job_id": safe_log_value(job_id),
        "item_id": safe_log_value(item_id),
        "error_type": type(exc).__name__,
        "error_msg": safe_log_value(str(exc)),
    })
    logger.error(message, exc_info=exc, extra=extra)
