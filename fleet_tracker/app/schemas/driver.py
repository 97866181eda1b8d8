"""
Driver Pydantic schemas.

Defines request and response models for driver management and tracking.
JSON keys are camelCase to match the driver portal and admin dashboard.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone
from typing import Any, List, Optional

from fleet_tracker.app.domain.tracking.location import Location


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DriverCreate(CamelModel):
    """Schema for creating a new driver."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200, description="Driver full name")
    phone: str = Field(..., min_length=1, max_length=32, description="Contact phone number")


class DriverUpdate(CamelModel):
    """Schema for editing a driver's profile. Tracking fields cannot be edited."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, min_length=1, max_length=32)


class DriverResponse(CamelModel):
    """Schema for driver response."""
    id: str
    name: str
    phone: str
    is_tracking: bool = False
    consent_given: bool = False
    consent_timestamp: Optional[datetime] = None
    last_location: Optional[Location] = None
    tracking_history: List[Location] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    placeholder: bool = False

    @field_validator("consent_timestamp", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive datetimes
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class DriverListResponse(CamelModel):
    """
    Schema for the driver listing.

    `degraded` is True when the store was unreachable and `drivers` holds
    placeholder entries instead of real data.
    """
    drivers: List[DriverResponse]
    total: int
    degraded: bool = False


class TrackingToggleRequest(CamelModel):
    """Schema for switching tracking on or off. Any action value is accepted."""
    driver_id: str = Field(..., min_length=1)
    action: Any = None
    timestamp: Any = None


class TrackingToggleResponse(CamelModel):
    success: bool = True
    driver: DriverResponse


class LocationAcceptedResponse(CamelModel):
    """Acknowledgement of a stored location sample."""
    success: bool = True
    driver_id: str
    location: Location
    history_length: int


class SeedResponse(CamelModel):
    success: bool = True
    drivers: int
