"""
Load testing for the walk-in patient queue.

Three user classes with different behaviors:
- HealthCheckUser: lightweight health endpoint checks
- ReceptionUser: realistic front-desk workflow (admit, list, update, remove)
- AdmissionBurstUser: rapid concurrent admissions to surface lost updates

After a run, GET /patients and confirm every queueNumber is unique.

Usage:
  # Web UI mode (opens at http://localhost:8089)
  locust -f locustfile.py --host http://localhost:8000

  # Headless mode
  locust -f locustfile.py --host http://localhost:8000 --headless -u 20 -r 5 --run-time 60s
"""

import random
import string

from locust import HttpUser, between, task


FIRST_NAMES = ["Ann", "Ben", "Chloe", "Dev", "Emma", "Farid", "Grace", "Hugo", "Ines", "Jon"]
LAST_NAMES = ["Lee", "Okafor", "Novak", "Patel", "Garcia", "Kim", "Schmidt", "Rossi"]


def _random_patient():
    """Build a complete admission body."""
    first = random.choice(FIRST_NAMES)
    last = random.choice(LAST_NAMES)
    suffix = "".join(random.choices(string.digits, k=4))
    return {
        "firstName": first,
        "lastName": last,
        "emailAddress": f"{first.lower()}.{last.lower()}{suffix}@example.com",
        "phoneNumber": f"555-{suffix}",
        "sex": random.choice(["female", "male"]),
    }


class HealthCheckUser(HttpUser):
    """Lightweight user that only hits health endpoints."""

    weight = 1
    wait_time = between(1, 3)

    @task(3)
    def health_live(self):
        self.client.get("/health/live", name="/health/live")

    @task(1)
    def health_ready(self):
        self.client.get("/health/ready", name="/health/ready")


class ReceptionUser(HttpUser):
    """Primary realistic user simulating the front desk."""

    weight = 3
    wait_time = between(1, 3)

    def on_start(self):
        self.admitted = []

    @task(4)
    def list_patients(self):
        with self.client.get("/patients", name="/patients", catch_response=True) as resp:
            if resp.status_code != 200:
                resp.failure(f"Unexpected status: {resp.status_code}")
                return
            numbers = [p.get("queueNumber") for p in resp.json()]
            if len(numbers) != len(set(numbers)):
                resp.failure("Duplicate queue numbers in the queue")

    @task(5)
    def admit(self):
        with self.client.post(
            "/patients/do-admiss",
            json=_random_patient(),
            name="/patients/do-admiss",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                self.admitted.append(resp.json()["queueNumber"])
                resp.success()
            elif resp.status_code == 429:
                resp.success()
            else:
                resp.failure(f"Unexpected status: {resp.status_code}")

    @task(2)
    def update(self):
        if not self.admitted:
            return
        body = _random_patient()
        body["queueNumber"] = random.choice(self.admitted)
        with self.client.put(
            "/patients/update",
            json=body,
            name="/patients/update",
            catch_response=True,
        ) as resp:
            # 404 when another user already removed the patient
            if resp.status_code in (200, 404, 429):
                resp.success()
            else:
                resp.failure(f"Unexpected status: {resp.status_code}")

    @task(2)
    def remove(self):
        if not self.admitted:
            return
        queue_number = self.admitted.pop(0)
        with self.client.delete(
            f"/patients/remove?queueNumber={queue_number}",
            name="/patients/remove",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 404, 429):
                resp.success()
            else:
                resp.failure(f"Unexpected status: {resp.status_code}")

    @task(1)
    def remove_unknown(self):
        with self.client.delete(
            "/patients/remove?queueNumber=999999999",
            name="/patients/remove [404]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (404, 429):
                resp.success()
            else:
                resp.failure(f"Expected 404 or 429, got {resp.status_code}")


class AdmissionBurstUser(HttpUser):
    """Aggressive user that admits back-to-back to stress the write lock."""

    weight = 1
    wait_time = between(0.05, 0.2)

    @task
    def burst_admit(self):
        with self.client.post(
            "/patients/do-admiss",
            json=_random_patient(),
            name="/patients/do-admiss [burst]",
            catch_response=True,
        ) as resp:
            if resp.status_code in (200, 429):
                resp.success()
            else:
                resp.failure(f"Unexpected status: {resp.status_code}")
