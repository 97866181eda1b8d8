"""
FastAPI Application Entry Point.

This is the main application file for the Fleet Tracker Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from fleet_tracker.app.core.config import settings
from fleet_tracker.app.api.v1.router import router as api_v1_router
from fleet_tracker.app.core.dependencies import get_tracking_engine
from fleet_tracker.app.core.observability import ObservabilityMiddleware, configure_logging
from fleet_tracker.app.db.session import engine, Base
from fleet_tracker.app.domain.tracking.engine import TrackingEngine
from fleet_tracker.app.services.driver_store import UNAVAILABLE_ERRORS
from fleet_tracker.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleet_tracker.app.models.driver import Driver  # noqa: F401

logger = logging.getLogger("fleet_tracker")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Keeps serving if the database is down (listings degrade, writes fail with 503).
    3. Disposes the connection pool on shutdown.
    """
    configure_logging(settings.log_level)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Connected to database")
    except UNAVAILABLE_ERRORS as exc:
        logger.warning("Database unavailable at startup, running without it: %s", exc)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Consent-gated driver location tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "X-Correlation-ID"],
)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check(tracking: TrackingEngine = Depends(get_tracking_engine)):
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and database connectivity
    """
    reachable = await tracking.store_is_reachable()
    return {
        "status": "healthy",
        "appName": settings.app_name,
        "version": settings.api_version,
        "database": "connected" if reachable else "disconnected",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to Fleet Tracker Backend API",
        "docs": "/docs",
        "health": "/health",
    }
