"""
Locust Load Test Suite

Prerequisite: seed users with eligible tickets first
  python -m scripts.seed_demo_data --users 100 --contested-capacity 10

Run scenarios:
  locust -f locust/locustfile.py --tags concurrency  # Test overbooking
  locust -f locust/locustfile.py --tags edge         # Test bad input
  locust -f locust/locustfile.py                     # All tests

SEED_FILE (env) points at the JSON written by the seed script.
"""

import itertools
import json
import os
import random

from locust import HttpUser, task, between, tag, events

SEED_FILE = os.getenv("SEED_FILE", "seed_tokens.json")
SEED = {}
_token_iter = None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    global _token_iter
    with open(SEED_FILE) as f:
        SEED.update(json.load(f))
    _token_iter = itertools.cycle(SEED["tokens"])
    print("\n" + "=" * 60)
    print(
        f"Loaded {len(SEED['tokens'])} attendees; room {SEED['contested_room_id']} "
        f"has {SEED['contested_capacity']} beds"
    )
    print("=" * 60)


def _next_headers() -> dict:
    return {"Authorization": f"Bearer {next(_token_iter)}"}


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many attendees -> one small room

    Run: locust -f locust/locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM bookings WHERE room_id = X;
    Should be <= contested capacity, and no user_id appears twice.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.headers = _next_headers()

    @tag("concurrency")
    @task(5)
    def book_contested_room(self):
        """Everyone fights for the same beds."""
        with self.client.post("/api/v1/booking",
            json={"room_id": SEED["contested_room_id"]},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 403 and resp.json().get("kind") in (
                "capacity_exceeded", "already_booked"
            ):
                resp.success()  # Expected: full, or this attendee already won a bed
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(1)
    def move_into_contested_room(self):
        """Attendees holding a spare room try to switch into the contested one."""
        resp = self.client.get("/api/v1/booking", headers=self.headers)
        if resp.status_code != 200:
            return

        booking_id = resp.json()["id"]
        with self.client.put(f"/api/v1/booking/{booking_id}",
            json={"room_id": SEED["contested_room_id"]},
            headers=self.headers,
            name="/api/v1/booking/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code in (200, 403):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(2)
    def book_spare_room(self):
        with self.client.post("/api/v1/booking",
            json={"room_id": random.choice(SEED["spare_room_ids"])},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (200, 403):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class EdgeCaseUser(HttpUser):
    """
    TEST 2: Edge cases - Bad input handling

    Run: locust -f locust/locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = _next_headers()

    @tag("edge")
    @task
    def invalid_room_id(self):
        """Book non-existent room."""
        with self.client.post("/api/v1/booking",
            json={"room_id": 999999},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in [403, 404]:
                resp.success()
            else:
                resp.failure(f"Expected 403/404, got {resp.status_code}")

    @tag("edge")
    @task
    def zero_room_id(self):
        with self.client.post("/api/v1/booking",
            json={"room_id": 0},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def foreign_booking_id(self):
        """Try to move a booking id that is not ours."""
        with self.client.put("/api/v1/booking/999999",
            json={"room_id": SEED["contested_room_id"]},
            headers=self.headers,
            name="/api/v1/booking/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code == 403:
                resp.success()
            else:
                resp.failure(f"Expected 403, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/booking",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        with self.client.post("/api/v1/booking",
            json={"room_id": SEED["contested_room_id"]},
            catch_response=True
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Expected 401, got {resp.status_code}")
