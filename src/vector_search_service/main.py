"""
Vector Search Service Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures global exception handling, and provides a test-friendly application
factory.

Design Goals
------------
- Centralized router registration
- Explicit error responses for provider failures
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator

from fastapi import FastAPI

from .config import settings
from .core.errors import (
    DimensionMismatchError,
    ServiceError,
    dimension_mismatch_handler,
    service_error_handler,
    unhandled_exception_handler,
)

from .api import (
    health_routes,
    index_routes,
    search_routes,
)
from .api.dependencies import get_search_provider


logger = logging.getLogger("vss.app")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Validate configuration on startup and close SDK clients on shutdown.
    """
    logger.info("Starting vector-search-service")

    # Touch secrets to force validation now (not at first use)
    _ = settings.azure_search_key.get_secret_value()
    _ = settings.openai_api_key.get_secret_value()

    logger.info(
        "Configuration validated (index=%s, model=%s)",
        settings.azure_search_index_name,
        settings.embedding_model,
    )

    yield

    logger.info("Shutting down vector-search-service")
    await get_search_provider().close()


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    app = FastAPI(
        title="vector-search-service",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(DimensionMismatchError, dimension_mismatch_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(index_routes.router)
    app.include_router(search_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
