"""
FastAPI application entry point.

Builds the batch research API: health and batch job routers under
/api/v1, correlation and request logging middleware, and a lifespan that
configures logging and releases pooled connections and cached
collaborators on shutdown.

Dependencies: fastapi, prospect_batch.api, prospect_batch.observability, prospect_batch.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prospect_batch.api.deps.dependencies import get_service_cache
from prospect_batch.api.routers import batch_jobs_router, health_router
from prospect_batch.boundary.db import get_async_engine
from prospect_batch.configs import get_settings
from prospect_batch.observability.logger import configure_logging
from prospect_batch.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(
        "Batch research API starting",
        extra={
            "durable_workflows": settings.workflow.enabled,
            "max_retries_per_prospect": settings.batch.max_retries_per_prospect,
        },
    )

    yield

    get_service_cache().clear()
    await get_async_engine().dispose()
    logger.info("Batch research API stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Prospect Batch Research API",
        description="Resumable batch prospect research driven by process-next polling",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Last added runs first: correlation ID is bound before the request is logged
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
        expose_headers=["X-Correlation-ID"],
    )

    app.include_router(health_router, prefix="/api/v1")
    app.include_router(batch_jobs_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("prospect_batch.main:app", host="0.0.0.0", port=8000)
