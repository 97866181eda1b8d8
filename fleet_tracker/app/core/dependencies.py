"""
Tracking dependencies for FastAPI.

This module wires the driver store and the tracking engine into request
handlers. Tests override `get_driver_store` to point the engine at another
database or at a failing store.
"""

from fastapi import Depends

from fleet_tracker.app.core.config import settings
from fleet_tracker.app.core.reliability import CircuitBreaker
from fleet_tracker.app.db.session import AsyncSessionLocal
from fleet_tracker.app.domain.tracking.engine import TrackingEngine
from fleet_tracker.app.services.driver_store import DriverStore, SqlDriverStore

# Shared across requests so consecutive listing failures accumulate
listing_circuit_breaker = CircuitBreaker(
    failure_threshold=settings.listing_breaker_failure_threshold,
    reset_timeout=settings.listing_breaker_reset_timeout,
)


def get_driver_store() -> DriverStore:
    """Driver store bound to the application's session factory."""
    return SqlDriverStore(AsyncSessionLocal)


def get_listing_breaker() -> CircuitBreaker:
    return listing_circuit_breaker


def get_tracking_engine(
    store: DriverStore = Depends(get_driver_store),
    breaker: CircuitBreaker = Depends(get_listing_breaker),
) -> TrackingEngine:
    """
    FastAPI dependency for the tracking engine.

    Args:
        store: Persistence adapter for this request
        breaker: Circuit breaker guarding the listing read

    Returns:
        TrackingEngine bound to the given store
    """
    return TrackingEngine(store, listing_breaker=breaker)
