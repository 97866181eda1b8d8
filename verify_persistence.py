import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
APP = "fleet_tracker.app.main:app"


def start_server(echo=False):
    env = {**os.environ, "DB_ECHO": "True"} if echo else dict(os.environ)
    return subprocess.Popen(
        [sys.executable, "-m", "uvicorn", APP, "--host", "127.0.0.1", "--port", "8000"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env
    )


def stop_server(proc):
    proc.send_signal(signal.SIGTERM)
    proc.wait()


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                if resp.json().get("database") != "connected":
                    print("⚠️ Server is up but the database is disconnected")
                return True
        except httpx.ConnectError:
            pass
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = start_server(echo=True)

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Seed and pick a driver
        print("\n--- [Step 2] Seeding Sample Drivers ---")
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/drivers/seed")
        if resp.status_code != 200:
            print(f"❌ Seeding Failed: {resp.status_code} {resp.text}")
            raise Exception("Seeding failed")
        print(f"✅ Seeded {resp.json()['drivers']} drivers")

        driver = httpx.get(f"{BASE_URL}{API_PREFIX}/drivers").json()["drivers"][0]
        driver_id = driver["id"]
        print(f"Using driver {driver['name']} ({driver_id})")

        # 3. Start tracking and submit a location
        print("\n--- [Step 3] Starting Tracking + Submitting Location ---")
        resp = httpx.post(
            f"{BASE_URL}{API_PREFIX}/driver/tracking",
            json={"driverId": driver_id, "action": "start_tracking"}
        )
        if resp.status_code != 200 or not resp.json()["driver"]["isTracking"]:
            print(f"❌ Tracking Toggle Failed: {resp.status_code} {resp.text}")
            raise Exception("Tracking toggle failed")

        resp = httpx.post(
            f"{BASE_URL}{API_PREFIX}/driver/location",
            json={"driverId": driver_id, "latitude": 40.7128, "longitude": -74.0060, "accuracy": 10}
        )
        if resp.status_code != 200:
            print(f"❌ Location Submit Failed: {resp.status_code} {resp.text}")
            raise Exception("Location submit failed")
        print(f"✅ Location accepted (history length {resp.json()['historyLength']})")

    finally:
        print("\n--- [Step 4] Stopping Server ---")
        stop_server(proc)

    time.sleep(2) # Wait for port release

    # 4. Restart Server
    print("\n--- [Step 5] Restarting Server (Verification) ---")
    proc2 = start_server()

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        # 5. Verify tracking state survived
        print("\n--- [Step 6] Verifying Driver State (Post-Restart) ---")
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/drivers/{driver_id}")

        if resp.status_code == 200:
            data = resp.json()
            if data["isTracking"] and data["consentGiven"] and data["lastLocation"] and data["trackingHistory"]:
                print("✅ Tracking state and location history persisted!")
                print(data)
            else:
                print(f"❌ Driver state incomplete after restart: {data}")
                raise Exception("State lost after restart")
        else:
            print(f"❌ Driver Lookup Failed (Persistence Issue?): {resp.status_code} {resp.text}")
            raise Exception("Driver lookup failed after restart")

    finally:
        print("\n--- [Step 7] Stopping Server ---")
        stop_server(proc2)


if __name__ == "__main__":
    run_verification()
