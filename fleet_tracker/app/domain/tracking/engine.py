"""
Driver Tracking Engine (Domain Logic).

Applies tracking toggles and location updates to drivers through an injected
DriverStore. Each command is a single atomic store call keyed by driver id;
the engine keeps no locks or state of its own.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from pydantic import ValidationError

from fleet_tracker.app.core.exceptions import DataValidationError, ResourceNotFoundError, StoreUnavailableError
from fleet_tracker.app.core.reliability import CircuitBreaker, CircuitOpenError
from fleet_tracker.app.domain.tracking.location import validate_location
from fleet_tracker.app.domain.tracking.state_machine import parse_action, transition_for
from fleet_tracker.app.schemas.driver import (
    DriverCreate, DriverUpdate, DriverResponse, DriverListResponse, LocationAcceptedResponse
)
from fleet_tracker.app.services.driver_store import DriverStore

logger = logging.getLogger("fleet_tracker.tracking")

# Roster written by seed_sample_drivers (non-production bootstrapping only)
SAMPLE_ROSTER: Tuple[Tuple[str, str], ...] = (
    ("John Smith", "+1-555-0101"),
    ("Maria Garcia", "+1-555-0102"),
    ("David Johnson", "+1-555-0103"),
    ("Sarah Williams", "+1-555-0104"),
)

# (id, name, phone) served instead of real data while the store is unreachable
PLACEHOLDER_ROSTER: Tuple[Tuple[str, str, str], ...] = (
    ("placeholder-1", "John Smith", "+1-555-0101"),
    ("placeholder-2", "Maria Garcia", "+1-555-0102"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _placeholder_drivers() -> List[DriverResponse]:
    return [
        DriverResponse(id=driver_id, name=name, phone=phone, placeholder=True)
        for driver_id, name, phone in PLACEHOLDER_ROSTER
    ]


def _validation_details(exc: ValidationError) -> dict:
    return {"errors": exc.errors(include_url=False, include_context=False, include_input=False)}


class TrackingEngine:
    """
    Consent/tracking state machine and location ingestion for drivers.

    Args:
        store: persistence adapter; the only serialization point
        listing_breaker: optional circuit breaker around the listing read
        clock: source of receipt time
    """

    def __init__(
        self,
        store: DriverStore,
        listing_breaker: Optional[CircuitBreaker] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self._listing_breaker = listing_breaker
        self._clock = clock

    async def apply_tracking_command(
        self,
        driver_id: str,
        action: Any,
        client_timestamp: Any = None
    ) -> DriverResponse:
        """
        Switch tracking on or off for a driver.

        Only the exact start sentinel starts tracking; every other action
        stops it. Starting stamps consent with the receipt time.

        Raises:
            ResourceNotFoundError: unknown driver (nothing is created)
            StoreUnavailableError: store unreachable
        """
        command = parse_action(action)
        transition = transition_for(command, self._clock())

        driver = await self._store.set_tracking(driver_id, transition)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_id)

        logger.info(
            "Tracking %s for driver %s (action=%r, client_timestamp=%r)",
            transition.state.value, driver_id, action, client_timestamp
        )
        return driver

    async def apply_location_update(self, driver_id: str, raw_location: Any) -> LocationAcceptedResponse:
        """
        Record a location sample: replace the snapshot and append to history.

        Accepted whether or not the driver is currently tracking.

        Raises:
            DataValidationError: malformed payload (checked before the lookup)
            ResourceNotFoundError: unknown driver
            StoreUnavailableError: store unreachable
        """
        location = validate_location(raw_location, received_at=self._clock())

        driver = await self._store.record_location(driver_id, location)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_id)

        logger.debug("Location recorded for driver %s (history=%d)", driver_id, len(driver.tracking_history))
        return LocationAcceptedResponse(
            driver_id=driver.id,
            location=location,
            history_length=len(driver.tracking_history),
        )

    async def list_drivers(self) -> DriverListResponse:
        """
        List all drivers, newest first.

        Never fails because of the store: when it is unreachable (or the
        listing circuit is open) a placeholder roster flagged `degraded`
        is returned instead.
        """
        try:
            if self._listing_breaker is not None:
                drivers = await self._listing_breaker.call(self._store.list_newest_first)
            else:
                drivers = await self._store.list_newest_first()
        except (StoreUnavailableError, CircuitOpenError) as exc:
            logger.warning("Driver store unavailable, serving placeholder drivers: %s", exc)
            placeholders = _placeholder_drivers()
            return DriverListResponse(drivers=placeholders, total=len(placeholders), degraded=True)

        return DriverListResponse(drivers=drivers, total=len(drivers))

    async def get_driver(self, driver_id: str) -> DriverResponse:
        driver = await self._store.get(driver_id)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_id)
        return driver

    async def create_driver(self, name: str, phone: str) -> DriverResponse:
        """
        Create a driver with tracking off and an empty history.

        Raises:
            DataValidationError: blank name or phone
        """
        try:
            payload = DriverCreate(name=name, phone=phone)
        except ValidationError as exc:
            raise DataValidationError("Invalid driver", details=_validation_details(exc)) from exc

        driver = await self._store.insert(payload.name, payload.phone)
        logger.info("Driver %s created", driver.id)
        return driver

    async def update_driver(self, driver_id: str, name: Optional[str] = None, phone: Optional[str] = None) -> DriverResponse:
        """Edit a driver's name and/or phone. Tracking fields are never touched."""
        try:
            payload = DriverUpdate(name=name, phone=phone)
        except ValidationError as exc:
            raise DataValidationError("Invalid driver update", details=_validation_details(exc)) from exc

        changes = payload.model_dump(exclude_none=True)
        if not changes:
            raise DataValidationError("Nothing to update", details={"fields": ["name", "phone"]})

        driver = await self._store.update_profile(driver_id, changes)
        if driver is None:
            raise ResourceNotFoundError("Driver", driver_id)
        return driver

    async def seed_sample_drivers(self) -> int:
        """
        Replace every driver with the sample roster.

        Destructive; store errors propagate.
        """
        count = await self._store.replace_all(SAMPLE_ROSTER)
        logger.warning("Driver table reset to %d sample drivers", count)
        return count

    async def store_is_reachable(self) -> bool:
        return await self._store.ping()
