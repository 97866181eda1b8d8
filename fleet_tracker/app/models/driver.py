"""
Driver database model.

One row per physical driver. The latest location snapshot and the full
location history are embedded in the row as JSON documents.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from fleet_tracker.app.db.session import Base

# JSONB on PostgreSQL so history appends can use the `||` operator
LocationDocument = JSON().with_variant(JSONB(), "postgresql")


def _new_driver_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Driver(Base):
    """
    Driver model.

    Tracking fields are only changed through the tracking engine;
    name and phone only through an explicit edit.
    """
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True, default=_new_driver_id)

    # Profile
    name = Column(String(200), nullable=False)
    phone = Column(String(32), nullable=False)

    # Tracking / consent state
    is_tracking = Column(Boolean, default=False, nullable=False)
    consent_given = Column(Boolean, default=False, nullable=False)
    consent_timestamp = Column(DateTime(timezone=True), nullable=True)

    # Location documents
    last_location = Column(LocationDocument, nullable=True)
    tracking_history = Column(LocationDocument, default=list, nullable=False)

    # Timestamps (python-side so rows created in one batch still order deterministically)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.name}', is_tracking={self.is_tracking})>"
