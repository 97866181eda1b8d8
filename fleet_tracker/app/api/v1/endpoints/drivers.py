"""
Driver Management API Endpoints.

Administrative creation, listing, editing and seeding of drivers.
"""

from fastapi import APIRouter, Depends, Path, status

from fleet_tracker.app.core.dependencies import get_tracking_engine
from fleet_tracker.app.domain.tracking.engine import TrackingEngine
from fleet_tracker.app.schemas.driver import (
    DriverCreate, DriverUpdate, DriverResponse, DriverListResponse, SeedResponse
)

router = APIRouter(prefix="/drivers", tags=["Drivers"])


@router.get("", response_model=DriverListResponse)
async def list_drivers(engine: TrackingEngine = Depends(get_tracking_engine)):
    """
    List all drivers, newest first.

    If the database is unreachable, returns placeholder drivers with
    `degraded: true` instead of an error.
    """
    return await engine.list_drivers()


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def create_driver(
    driver_data: DriverCreate,
    engine: TrackingEngine = Depends(get_tracking_engine)
):
    """Create a driver. Tracking starts switched off."""
    return await engine.create_driver(driver_data.name, driver_data.phone)


@router.post("/seed", response_model=SeedResponse)
async def seed_drivers(engine: TrackingEngine = Depends(get_tracking_engine)):
    """
    Replace all drivers with the sample roster.

    Destructive: intended for non-production bootstrapping only.
    """
    count = await engine.seed_sample_drivers()
    return SeedResponse(drivers=count)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: str = Path(..., description="Driver ID"),
    engine: TrackingEngine = Depends(get_tracking_engine)
):
    return await engine.get_driver(driver_id)


@router.patch("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_data: DriverUpdate,
    driver_id: str = Path(..., description="Driver ID"),
    engine: TrackingEngine = Depends(get_tracking_engine)
):
    """Edit a driver's name and/or phone."""
    return await engine.update_driver(driver_id, name=driver_data.name, phone=driver_data.phone)
