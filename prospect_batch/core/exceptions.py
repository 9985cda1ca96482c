"""
Exception hierarchy for the batch prospect research engine.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class ProspectBatchException(Exception):
    """Base exception for all batch research errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ProspectBatchException):
    """Raised when request or prospect validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class BatchJobNotFoundError(ProspectBatchException):
    """Raised when a job does not exist or belongs to another user."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["job_id"] = job_id
        super().__init__("Job not found", details)


class BatchItemNotFoundError(ProspectBatchException):
    """Raised when an item does not exist within the caller's job."""

    def __init__(self, item_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["item_id"] = item_id
        super().__init__("Item not found", details)


class InvalidStatusTransitionError(ProspectBatchException):
    """Raised when a job status change is not allowed."""

    def __init__(
        self,
        current_status: str,
        requested_status: str,
        message: str | None = None,
    ) -> None:
        super().__init__(
            message or f"Cannot move job from {current_status} to {requested_status}",
            {"current_status": current_status, "requested_status": requested_status},
        )


class ItemRetryConflictError(ProspectBatchException):
    """Raised when an item cannot be retried in its current state."""

    pass


class ActiveJobLimitError(ProspectBatchException):
    """Raised when a user already has the maximum number of active jobs."""

    pass


class CompletionCheckError(ProspectBatchException):
    """Raised when remaining work cannot be counted before finalizing a job."""

    pass


class ResearchPipelineError(ProspectBatchException):
    """Raised by research pipelines for enrichment-level failures."""

    def __init__(
        self,
        message: str,
        item_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if item_id:
            details["item_id"] = item_id
        super().__init__(message, details)


class WorkflowInfrastructureError(ProspectBatchException):
    """Raised when the durable workflow engine itself is unavailable or broken."""

    def __init__(
        self,
        message: str,
        workflow: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if workflow:
            details["workflow"] = workflow
        super().__init__(message, details)
