"""
Database seeding script for sample drivers.

Replaces every driver with the fixed sample roster. Destructive: intended for
development and demo databases, never production.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet_tracker.app.db.session import AsyncSessionLocal, engine, Base
from fleet_tracker.app.domain.tracking.engine import TrackingEngine, SAMPLE_ROSTER
from fleet_tracker.app.services.driver_store import SqlDriverStore
from fleet_tracker.app.models.driver import Driver  # noqa: F401


async def seed_drivers():
    """
    Seed the sample roster.

    Creates the drivers table if needed, deletes all drivers,
    then inserts the roster.
    """
    print("🌱 Starting driver seeding...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    tracking = TrackingEngine(SqlDriverStore(AsyncSessionLocal))
    count = await tracking.seed_sample_drivers()

    print(f"\n🎉 Seeded {count} drivers:")
    for name, phone in SAMPLE_ROSTER:
        print(f"  - {name:<15} {phone}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_drivers())
