"""
Shared pytest fixtures for meeting cycle tests.
"""
import pytest
from fastapi.testclient import TestClient

from main import app
from models import Client, MeetingRecord, MeetingStatus
from seed import seed_data
import store


def make_client(
    client_id: str = "c1",
    enrollment_month: str = "2025-01",
    enrollment_day=15,
    status_by_month=None,
    name: str = "Test Client",
    phone: str = "1234",
    sequence: int = 1,
) -> Client:
    """Build a Client; status_by_month values may be MeetingStatus or (status, customDate)."""
    records = {}
    for month, value in (status_by_month or {}).items():
        if isinstance(value, tuple):
            records[month] = MeetingRecord(value[0], customDate=value[1])
        else:
            records[month] = MeetingRecord(value)
    return Client(
        id=client_id,
        name=name,
        phoneDigits=phone,
        enrollmentMonth=enrollment_month,
        enrollmentDay=enrollment_day,
        sequenceNumber=sequence,
        statusByMonth=records,
    )


class FailingBackend(store.ClientBackend):
    """Backend that rejects every write."""

    def __init__(self):
        self.calls = 0

    def upsert(self, client_id, patch):
        self.calls += 1
        raise ConnectionError("backend unavailable")

    def delete(self, client_id):
        self.calls += 1
        raise ConnectionError("backend unavailable")


@pytest.fixture
def client():
    """FastAPI TestClient."""
    return TestClient(app)


@pytest.fixture
def seeded_data():
    """Reset to the seeded demo clients."""
    seed_data()
    yield
    seed_data()


@pytest.fixture
def failing_backend(seeded_data):
    backend = FailingBackend()
    previous = store.set_backend(backend)
    yield backend
    store.set_backend(previous)


@pytest.fixture
def empty_store():
    store.reset_store([])
    yield
    seed_data()
