"""Pytest configuration shared by the queue tests.

Environment overrides are applied before patient_queue.config is imported so
the app never touches a real datastore and rate limits never trip.
"""

import os
import tempfile

import pytest

_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("STATIC_DIR", os.path.join(_ROOT, "www"))
os.environ.setdefault(
    "PATIENTS_JSON_PATH", os.path.join(tempfile.mkdtemp(prefix="patient-queue-"), "patients.json")
)

from patient_queue.queue_service import QueueService  # noqa: E402
from patient_queue.store import PatientStore  # noqa: E402


def _patient(first_name="Ann", last_name="Lee", **overrides):
    patient = {
        "firstName": first_name,
        "lastName": last_name,
        "emailAddress": f"{first_name.lower()}@example.com",
        "phoneNumber": "555-0100",
        "sex": "female",
    }
    patient.update(overrides)
    return patient


@pytest.fixture
def make_patient():
    """Factory for complete admission bodies in their JSON shape."""
    return _patient


@pytest.fixture
def data_path(tmp_path):
    return tmp_path / "patients.json"


@pytest.fixture
def store(data_path):
    s = PatientStore(str(data_path))
    s.ensure_initialized()
    return s


@pytest.fixture
def service(store):
    return QueueService(store)
