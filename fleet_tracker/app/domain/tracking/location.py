"""
Location record model.

Validation and normalization of a single location sample, and selection of
the snapshot exposed as a driver's last location.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from fleet_tracker.app.core.exceptions import DataValidationError


class Location(BaseModel):
    """
    One coordinate sample reported by a driver's device.

    Coordinates must be real numbers (numeric strings and booleans are
    rejected). `timestamp` is the client's clock, not the server's.
    """
    model_config = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)

    lat: float = Field(..., ge=-90, le=90, strict=True, validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(..., ge=-180, le=180, strict=True, validation_alias=AliasChoices("lng", "longitude"))
    accuracy: Optional[float] = Field(None, ge=0, strict=True)
    speed: float = Field(0.0, ge=0, strict=True)
    timestamp: datetime
    address: Optional[str] = Field(None, max_length=500)

    @field_validator("speed", mode="before")
    @classmethod
    def default_missing_speed(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


def validate_location(raw: Any, received_at: datetime) -> Location:
    """
    Validate a raw location payload and normalize it.

    A missing or null timestamp is replaced by `received_at`; an explicit but
    unparseable timestamp is an error.

    Raises:
        DataValidationError: if the payload is malformed
    """
    if not isinstance(raw, Mapping):
        raise DataValidationError("Location payload must be an object")

    payload = dict(raw)
    if payload.get("timestamp") is None:
        payload["timestamp"] = received_at

    try:
        return Location.model_validate(payload)
    except ValidationError as exc:
        raise DataValidationError(
            "Invalid location payload",
            details={"errors": exc.errors(include_url=False, include_context=False, include_input=False)}
        ) from exc


def snapshot_of(history: Sequence[Location]) -> Optional[Location]:
    """Return the most recently appended location (arrival order, not timestamp order)."""
    if not history:
        return None
    return history[-1]
