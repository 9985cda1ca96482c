"""
Request correlation IDs.

Each process-next call gets one correlation ID, taken from the
X-Correlation-ID header or generated, so the claim, research and
record log lines of a single call can be grouped.

Dependencies: contextvars
System role: Request tracing across service boundaries
"""

import uuid
from contextvars import ContextVar

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind a correlation ID to the current context.

    Args:
        correlation_id: Incoming ID; a new UUID4 is generated when empty

    Returns:
        str: The bound correlation ID
    """
    value = (correlation_id or "").strip() or str(uuid.uuid4())
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """Current correlation ID, or an empty string outside a request."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")
