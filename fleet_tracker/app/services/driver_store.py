"""
Driver store.

Persistence adapter used by the tracking engine. Every mutation is a single
atomic statement (or one transaction for seeding) keyed by driver id, which
makes the database the only serialization point for concurrent commands.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Sequence, Tuple

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fleet_tracker.app.core.exceptions import StoreUnavailableError
from fleet_tracker.app.db.json_ops import json_array_append
from fleet_tracker.app.domain.tracking.location import Location, snapshot_of
from fleet_tracker.app.domain.tracking.state_machine import TrackingTransition
from fleet_tracker.app.models.driver import Driver
from fleet_tracker.app.schemas.driver import DriverResponse

# Errors meaning "the database could not be reached", as opposed to bad SQL or constraint violations
UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, OSError)


class DriverStore(Protocol):
    """Operations the tracking engine needs from persistence."""

    async def list_newest_first(self) -> List[DriverResponse]: ...

    async def get(self, driver_id: str) -> Optional[DriverResponse]: ...

    async def insert(self, name: str, phone: str) -> DriverResponse: ...

    async def update_profile(self, driver_id: str, changes: Dict[str, Any]) -> Optional[DriverResponse]: ...

    async def set_tracking(self, driver_id: str, transition: TrackingTransition) -> Optional[DriverResponse]: ...

    async def record_location(self, driver_id: str, location: Location) -> Optional[DriverResponse]: ...

    async def replace_all(self, roster: Sequence[Tuple[str, str]]) -> int: ...

    async def ping(self) -> bool: ...


def _to_response(driver: Driver) -> DriverResponse:
    # last_location is read back from the history so the two cannot disagree
    history = [Location.model_validate(entry) for entry in driver.tracking_history or []]
    return DriverResponse(
        id=driver.id,
        name=driver.name,
        phone=driver.phone,
        is_tracking=driver.is_tracking,
        consent_given=driver.consent_given,
        consent_timestamp=driver.consent_timestamp,
        last_location=snapshot_of(history),
        tracking_history=history,
        created_at=driver.created_at,
        updated_at=driver.updated_at,
    )


class SqlDriverStore:
    """DriverStore backed by an SQLAlchemy async session factory."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except UNAVAILABLE_ERRORS as exc:
            raise StoreUnavailableError(operation, reason=str(exc)) from exc

    async def list_newest_first(self) -> List[DriverResponse]:
        async with self._transaction("list") as session:
            result = await session.execute(
                select(Driver).order_by(Driver.created_at.desc())
            )
            return [_to_response(driver) for driver in result.scalars().all()]

    async def get(self, driver_id: str) -> Optional[DriverResponse]:
        async with self._transaction("get") as session:
            driver = await session.get(Driver, driver_id)
            return _to_response(driver) if driver else None

    async def insert(self, name: str, phone: str) -> DriverResponse:
        async with self._transaction("create") as session:
            driver = _new_driver(name, phone, datetime.now(timezone.utc))
            session.add(driver)
            await session.flush()
            return _to_response(driver)

    async def _update_returning(self, operation: str, driver_id: str, values: Dict[str, Any]) -> Optional[DriverResponse]:
        stmt = (
            update(Driver)
            .where(Driver.id == driver_id)
            .values(**values)
            .returning(Driver)
            .execution_options(synchronize_session=False)
        )
        async with self._transaction(operation) as session:
            result = await session.execute(stmt)
            driver = result.scalar_one_or_none()
            return _to_response(driver) if driver else None

    async def update_profile(self, driver_id: str, changes: Dict[str, Any]) -> Optional[DriverResponse]:
        return await self._update_returning("update", driver_id, changes)

    async def set_tracking(self, driver_id: str, transition: TrackingTransition) -> Optional[DriverResponse]:
        return await self._update_returning("tracking", driver_id, {
            "is_tracking": transition.is_tracking,
            "consent_given": transition.consent_given,
            "consent_timestamp": transition.consent_timestamp,
        })

    async def record_location(self, driver_id: str, location: Location) -> Optional[DriverResponse]:
        document = location.model_dump(mode="json")
        # Snapshot and append land in the same statement
        return await self._update_returning("location", driver_id, {
            "last_location": document,
            "tracking_history": json_array_append(Driver.tracking_history, document),
        })

    async def replace_all(self, roster: Sequence[Tuple[str, str]]) -> int:
        async with self._transaction("seed") as session:
            await session.execute(delete(Driver))
            base = datetime.now(timezone.utc)
            session.add_all([
                _new_driver(name, phone, base + timedelta(microseconds=offset))
                for offset, (name, phone) in enumerate(roster)
            ])
        return len(roster)

    async def ping(self) -> bool:
        try:
            async with self._transaction("ping") as session:
                await session.execute(text("SELECT 1"))
        except StoreUnavailableError:
            return False
        return True


def _new_driver(name: str, phone: str, created_at: datetime) -> Driver:
    return Driver(
        id=str(uuid.uuid4()),
        name=name,
        phone=phone,
        is_tracking=False,
        consent_given=False,
        consent_timestamp=None,
        last_location=None,
        tracking_history=[],
        created_at=created_at,
        updated_at=created_at,
    )
