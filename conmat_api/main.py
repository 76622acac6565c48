"""FastAPI application entry point for conmat WebAPI.

This module configures and creates the FastAPI application instance,
sets up CORS middleware, and defines the root and health check endpoints.
"""

import logging
from contextlib import asynccontextmanager

import numpy as np
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.router import router as api_v1_router
from .api.v1.schemas.common import HealthResponse
from .config import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    if settings.debug:
        logging.getLogger("conmat_api").setLevel(logging.DEBUG)
    logger.info(
        f"Starting {settings.app_name} {settings.app_version} "
        f"(max matrix size {settings.max_matrix_size})"
    )
    yield
    # Shutdown: nothing to clean up


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="REST API for building age-structured contact and transmission matrices",
    docs_url=f"{settings.api_v1_prefix}/docs",
    redoc_url=f"{settings.api_v1_prefix}/redoc",
    openapi_url=f"{settings.api_v1_prefix}/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


@app.get(f"{settings.api_v1_prefix}/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Check API health status.

    Returns
    -------
    HealthResponse
        Health status including API and numpy versions.
    """
    return HealthResponse(
        status="healthy",
        version=settings.app_version,
        numpy_version=np.__version__,
    )


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint providing API information.

    Returns
    -------
    dict
        API name, links to documentation and health check, the matrix
        endpoints and the request limits.
    """
    prefix = settings.api_v1_prefix
    return {
        "message": settings.app_name,
        "docs": f"{prefix}/docs",
        "health": f"{prefix}/health",
        "endpoints": {
            "populations": f"{prefix}/populations",
            "age_grid": f"{prefix}/contacts/age-grid",
            "aggregate": f"{prefix}/contacts/aggregate",
            "transmission": f"{prefix}/transmission",
        },
        "limits": {
            "max_matrix_size": settings.max_matrix_size,
            "default_aggregation_method": settings.default_aggregation_method,
        },
    }
