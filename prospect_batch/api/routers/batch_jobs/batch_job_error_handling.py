"""
Batch job error handling utilities.

Provides a decorator for consistent error handling across batch job API
endpoints, mapping domain and store exceptions to HTTP status codes.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from prospect_batch.core.exceptions import (
    ActiveJobLimitError,
    BatchItemNotFoundError,
    BatchJobNotFoundError,
    CompletionCheckError,
    InvalidStatusTransitionError,
    ItemRetryConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_batch_errors(func: F) -> F:
    """
    Decorator to transform batch job errors into HTTPExceptions.

    This centralizes:
    - Logging of errors with context
    - Mapping domain exceptions to HTTP status codes
    - Reporting store outages as 503 without touching job state
    """
    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)

        except HTTPException:
            raise

        except (BatchJobNotFoundError, BatchItemNotFoundError) as e:
            logger.warning("Batch resource not found", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

        except (ValidationError, InvalidStatusTransitionError) as e:
            logger.warning("Invalid batch request", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

        except ItemRetryConflictError as e:
            logger.warning("Item retry conflict", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

        except ActiveJobLimitError as e:
            logger.warning("Active job limit reached", extra={"error": str(e)})
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=e.message)

        except PydanticValidationError as e:
            logger.warning("Pydantic validation error", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=e.errors(),
            )

        except CompletionCheckError as e:
            if isinstance(e.__cause__, (OperationalError, InterfaceError)):
                logger.error("Store unavailable during completion check", extra={"error": str(e)})
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Database temporarily unavailable, try again",
                )
            logger.error("Completion check failed", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to check remaining items: {e.message}",
            )

        except (OperationalError, InterfaceError) as e:
            logger.error("Store unavailable", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database temporarily unavailable, try again",
            )

        except SQLAlchemyError as e:
            logger.exception("Store failure in batch operation", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database error",
            )

        except Exception as e:
            logger.exception("Unexpected failure in batch operation", extra={"error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="An internal error occurred during batch operation",
            )

    return wrapper  # type: ignore
