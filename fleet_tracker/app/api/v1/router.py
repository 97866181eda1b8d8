"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from fleet_tracker.app.api.v1.endpoints import drivers, tracking

router = APIRouter()

# Driver administration
router.include_router(drivers.router)

# Tracking toggle and location ingestion
router.include_router(tracking.router)
