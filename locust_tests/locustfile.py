"""
CourierHub Load Test — Locust Script
=====================================
Simulates a dispatch peak: back-office staff booking and assigning consignments
while riders poll their delivery sheets.

Usage:
    locust -f locust_tests/locustfile.py --host=http://localhost:8000 \
           --users=500 --spawn-rate=50 --run-time=5m --headless

Seed the accounts below in the target database before running.
"""

import random
import time
from locust import HttpUser, task, between, events
from locust.exception import StopUser

STAFF_PHONE = "+923001000002"
RIDER_PHONE = "+923001000010"
PASSWORD    = "Test@1234"

# Rider that staff users assign consignments to (UUID of the seeded rider agent)
RIDER_ID = "00000000-0000-0000-0000-000000000000"

CITIES = ["Lahore", "Karachi", "Islamabad", "Multan"]


def _login(client, phone):
    resp = client.post("/api/auth/login/", json={"phone": phone, "password": PASSWORD}, name="/api/auth/login/")
    if resp.status_code != 200:
        raise StopUser()
    return {"Authorization": f"Bearer {resp.json().get('access')}"}


class DispatchStaff(HttpUser):
    """Books consignments and hands them to riders."""
    wait_time = between(0.5, 2.0)

    def on_start(self):
        self.headers = _login(self.client, STAFF_PHONE)
        self.booked  = []

    @task(5)
    def create_booking(self):
        cn = f"CN{random.randint(100000, 999999)}{int(time.time() * 1000) % 1000000:06d}"
        resp = self.client.post(
            "/api/consignments/",
            json={
                "consignment_number": cn,
                "account_no":         "ACC1",
                "consignee_name":     "Load Test",
                "consignee_mobile":   f"0300{random.randint(1000000, 9999999)}",
                "destination_city":   random.choice(CITIES),
                "origin_city":        "Lahore",
                "service_type":       "overnight",
                "weight":             str(random.randint(1, 20)),
                "pieces":             random.randint(1, 3),
                "cod_amount":         str(random.randint(500, 15000)),
            },
            headers=self.headers,
            name="/api/consignments/ [POST]",
        )
        if resp.status_code == 201:
            self.booked.append(cn)

    @task(3)
    def list_consignments(self):
        self.client.get(
            "/api/consignments/",
            params={"status": random.choice(["pending", "in-transit"])},
            headers=self.headers,
            name="/api/consignments/ [GET]",
        )

    @task(2)
    def assign(self):
        if not self.booked:
            return
        cn = self.booked.pop()
        with self.client.post(
            "/api/delivery-sheets/assign/",
            json={"rider_id": RIDER_ID, "consignment_number": cn},
            headers=self.headers,
            name="/api/delivery-sheets/assign/",
            catch_response=True,
        ) as resp:
            # a conflict is a correct answer under contention
            if resp.status_code in (201, 409):
                resp.success()

    @task(1)
    def health_check(self):
        self.client.get("/api/health/deep/", name="/api/health/deep/")


class Rider(HttpUser):
    """Riders poll their sheet far more often than they act on it."""
    wait_time = between(2, 5)
    weight    = 1

    def on_start(self):
        self.headers = _login(self.client, RIDER_PHONE)

    @task(3)
    def my_sheet(self):
        with self.client.get(
            "/api/delivery-sheets/mine/", headers=self.headers, name="/api/delivery-sheets/mine/",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 404):
                resp.success()

    @task(1)
    def todays_returns(self):
        with self.client.get(
            "/api/return-sheets/today/", headers=self.headers, name="/api/return-sheets/today/",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 404):
                resp.success()


# ── Custom events for Locust reporting ────────────────────────────────────────
@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    print("\n=== CourierHub Load Test Complete ===")
    stats = environment.stats.total
    print(f"Total requests:      {stats.num_requests}")
    print(f"Failures:            {stats.num_failures}")
    print(f"Avg response time:   {stats.avg_response_time:.0f}ms")
    print(f"95th percentile:     {stats.get_response_time_percentile(0.95):.0f}ms")
    print(f"Requests/sec:        {stats.current_rps:.1f}")
    if stats.num_failures / max(stats.num_requests, 1) > 0.01:
        print("FAILURE RATE > 1%")
    else:
        print("System stable under load")
