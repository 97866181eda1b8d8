"""
Integration tests for the driver and tracking HTTP endpoints.
"""

import logging

import pytest

from fleet_tracker.app.core.observability import LOG_FORMAT

# Note: Client and DB setup are in conftest.py


@pytest.fixture
async def driver_id(client):
    """Create a driver over HTTP and return its id."""
    response = await client.post("/v1/drivers", json={"name": "Maria Garcia", "phone": "+1-555-0102"})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.mark.asyncio
async def test_health_reports_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert "X-Correlation-ID" in response.headers


@pytest.mark.asyncio
async def test_correlation_id_is_propagated(client):
    response = await client.get("/", headers={"X-Correlation-ID": "abc-123"})
    assert response.headers["X-Correlation-ID"] == "abc-123"


@pytest.mark.asyncio
async def test_request_log_line_carries_correlation_id(client, caplog):
    caplog.set_level(logging.INFO, logger="fleet_tracker.http")

    await client.get("/", headers={"X-Correlation-ID": "corr-xyz"})
    await client.get("/v1/drivers/missing", headers={"X-Correlation-ID": "corr-404"})

    records = [r for r in caplog.records if r.name == "fleet_tracker.http"]
    lines = [logging.Formatter(LOG_FORMAT).format(r) for r in records]

    assert "GET / -> 200" in lines[0]
    assert "correlation_id=corr-xyz" in lines[0]
    assert "correlation_id=corr-404" in lines[1]
    assert records[1].levelno == logging.WARNING
    assert records[1].status_code == 404


@pytest.mark.asyncio
async def test_create_driver(client):
    response = await client.post("/v1/drivers", json={"name": "John Smith", "phone": "+1-555-0101"})

    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "John Smith"
    assert data["isTracking"] is False
    assert data["consentGiven"] is False
    assert data["consentTimestamp"] is None
    assert data["lastLocation"] is None
    assert data["trackingHistory"] == []
    assert "id" in data


@pytest.mark.asyncio
async def test_create_driver_validation(client):
    response = await client.post("/v1/drivers", json={"name": "", "phone": "+1-555-0101"})

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_list_drivers(client, driver_id):
    response = await client.get("/v1/drivers")

    assert response.status_code == 200
    data = response.json()
    assert data["degraded"] is False
    assert data["total"] == 1
    assert data["drivers"][0]["id"] == driver_id
    assert data["drivers"][0]["placeholder"] is False


@pytest.mark.asyncio
async def test_start_then_stop_tracking(client, driver_id):
    response = await client.post("/v1/driver/tracking", json={
        "driverId": driver_id,
        "action": "start_tracking",
        "timestamp": "2026-05-04T09:00:00Z"
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["driver"]["isTracking"] is True
    assert data["driver"]["consentGiven"] is True
    assert data["driver"]["consentTimestamp"] is not None

    response = await client.post("/v1/driver/tracking", json={"driverId": driver_id, "action": "stop_tracking"})

    driver = response.json()["driver"]
    assert driver["isTracking"] is False
    assert driver["consentGiven"] is False
    assert driver["consentTimestamp"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("action", ["garbage", "", None, 7])
async def test_unrecognized_action_stops_tracking(client, driver_id, action):
    await client.post("/v1/driver/tracking", json={"driverId": driver_id, "action": "start_tracking"})

    response = await client.post("/v1/driver/tracking", json={"driverId": driver_id, "action": action})

    assert response.status_code == 200
    assert response.json()["driver"]["isTracking"] is False


@pytest.mark.asyncio
async def test_tracking_unknown_driver(client):
    response = await client.post("/v1/driver/tracking", json={"driverId": "missing", "action": "start_tracking"})

    assert response.status_code == 404
    assert response.json()["error_code"] == "ERR_NOT_FOUND_001"

    listing = await client.get("/v1/drivers")
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_tracking_requires_driver_id(client):
    response = await client.post("/v1/driver/tracking", json={"action": "start_tracking"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_location(client, driver_id):
    response = await client.post("/v1/driver/location", json={
        "driverId": driver_id,
        "latitude": 40.7128,
        "longitude": -74.0060,
        "accuracy": 8,
        "timestamp": "2026-05-04T09:15:00Z"
    })

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["driverId"] == driver_id
    assert data["historyLength"] == 1
    assert data["location"]["lat"] == 40.7128
    assert data["location"]["speed"] == 0

    driver = (await client.get(f"/v1/drivers/{driver_id}")).json()
    assert driver["lastLocation"]["lng"] == -74.0060
    assert driver["lastLocation"]["accuracy"] == 8
    assert len(driver["trackingHistory"]) == 1


@pytest.mark.asyncio
async def test_submit_location_history_order(client, driver_id):
    for lat in (1.0, 2.0, 3.0):
        response = await client.post("/v1/driver/location", json={"driverId": driver_id, "lat": lat, "lng": 0.0})
        assert response.status_code == 200

    driver = (await client.get(f"/v1/drivers/{driver_id}")).json()
    assert [loc["lat"] for loc in driver["trackingHistory"]] == [1.0, 2.0, 3.0]
    assert driver["lastLocation"]["lat"] == 3.0


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"longitude": -74.0},
    {"latitude": "abc", "longitude": -74.0},
    {"latitude": 40.0, "longitude": -74.0, "timestamp": "not-a-date"},
    {"latitude": 40.0, "longitude": -74.0, "speed": -10},
])
async def test_submit_invalid_location(client, driver_id, payload):
    response = await client.post("/v1/driver/location", json={"driverId": driver_id, **payload})

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    driver = (await client.get(f"/v1/drivers/{driver_id}")).json()
    assert driver["trackingHistory"] == []
    assert driver["lastLocation"] is None


@pytest.mark.asyncio
async def test_submit_location_requires_driver_id(client):
    response = await client.post("/v1/driver/location", json={"latitude": 1.0, "longitude": 2.0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_location_unknown_driver(client):
    response = await client.post("/v1/driver/location", json={"driverId": "missing", "latitude": 1.0, "longitude": 2.0})

    assert response.status_code == 404
    listing = await client.get("/v1/drivers")
    assert listing.json()["total"] == 0


@pytest.mark.asyncio
async def test_update_driver(client, driver_id):
    response = await client.patch(f"/v1/drivers/{driver_id}", json={"name": "Maria G. Lopez"})

    assert response.status_code == 200
    assert response.json()["name"] == "Maria G. Lopez"
    assert response.json()["phone"] == "+1-555-0102"


@pytest.mark.asyncio
async def test_update_driver_without_fields(client, driver_id):
    response = await client.patch(f"/v1/drivers/{driver_id}", json={})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_unknown_driver(client):
    response = await client.get("/v1/drivers/missing")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_seed_replaces_existing_drivers(client, driver_id):
    response = await client.post("/v1/drivers/seed")

    assert response.status_code == 200
    assert response.json() == {"success": True, "drivers": 4}

    listing = (await client.get("/v1/drivers")).json()
    assert listing["total"] == 4
    assert driver_id not in [d["id"] for d in listing["drivers"]]
