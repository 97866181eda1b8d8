"""
Driver Tracking API Endpoints.

Drivers switch location sharing on/off and submit GPS samples.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from fleet_tracker.app.core.dependencies import get_tracking_engine
from fleet_tracker.app.core.exceptions import DataValidationError
from fleet_tracker.app.domain.tracking.engine import TrackingEngine
from fleet_tracker.app.schemas.driver import (
    TrackingToggleRequest, TrackingToggleResponse, LocationAcceptedResponse
)

router = APIRouter(prefix="/driver", tags=["Driver - Tracking"])


@router.post("/tracking", response_model=TrackingToggleResponse)
async def toggle_tracking(
    request: TrackingToggleRequest,
    engine: TrackingEngine = Depends(get_tracking_engine)
):
    """
    Start or stop tracking for a driver.

    `action: "start_tracking"` starts tracking and records consent; any
    other action stops it and clears consent.
    """
    driver = await engine.apply_tracking_command(
        request.driver_id, request.action, client_timestamp=request.timestamp
    )
    return TrackingToggleResponse(driver=driver)


@router.post("/location", response_model=LocationAcceptedResponse)
async def submit_location(
    payload: Dict[str, Any] = Body(...),
    engine: TrackingEngine = Depends(get_tracking_engine)
):
    """
    Record a GPS sample for a driver.

    Body: driverId, latitude (or lat), longitude (or lng), and optional
    accuracy, speed, timestamp, address.
    """
    driver_id = payload.get("driverId")
    if not isinstance(driver_id, str) or not driver_id:
        raise DataValidationError("driverId is required", details={"field": "driverId"})

    return await engine.apply_location_update(driver_id, payload)
