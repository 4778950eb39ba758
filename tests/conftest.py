import os
from datetime import date, timedelta

# Must be set before the app (and its settings) are imported
os.environ["TESTING"] = "1"
os.environ["TEST_DATABASE_URL"] = "sqlite:///./test.db"
os.environ["ADMIN_PASSWORD"] = "front-desk-secret"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.main import app
from app.core.database import get_db, get_redis, Base
from app.models import Location, Provider, AppointmentSlot, SlotStatus
from app.services.workflow_client import (
    WorkflowClient, AutomationClient, get_workflow_client, get_automation_client
)

ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]

# Create test database
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db

def next_monday(after: date) -> date:
    return after + timedelta(days=(7 - after.weekday()) % 7 or 7)

# First bookable day used by the seeded schedule
APPOINTMENT_DATE = next_monday(date.today() + timedelta(days=7))

class FakeEndpoint:
    """Records outgoing requests and answers with ``handler``."""

    def __init__(self, handler):
        self.handler = handler
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

@pytest.fixture(scope="function")
def test_db():
    # Create tables
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture(autouse=True)
def reset_redis():
    get_redis().flushall()
    yield

@pytest.fixture
def client(test_db):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client

@pytest.fixture
def db_session(test_db):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def clinic(db_session):
    """Two locations, three providers and a week of slots; returns ids by name."""
    d = APPOINTMENT_DATE

    downtown = Location(name="Downtown Clinic")
    uptown = Location(name="Uptown Clinic")
    db_session.add_all([downtown, uptown])
    db_session.flush()

    smith = Provider(name="Dr. Smith", location_id=downtown.id)
    adams = Provider(name="Dr. Adams", location_id=downtown.id)
    jones = Provider(name="Dr. Jones", location_id=uptown.id)
    db_session.add_all([smith, adams, jones])
    db_session.flush()

    def slot(provider, day, start, end, status=SlotStatus.AVAILABLE):
        s = AppointmentSlot(
            location_id=provider.location_id,
            provider_id=provider.id,
            date=day,
            start_time=start,
            end_time=end,
            status=status
        )
        db_session.add(s)
        return s

    slots = {
        "smith_0900": slot(smith, d, "9:00 AM", "9:30 AM"),
        "smith_1030": slot(smith, d, "10:30 AM", "11:00 AM"),
        "smith_0100pm": slot(smith, d, "1:00 PM", "1:30 PM"),
        "adams_1030": slot(adams, d, "10:30 AM", "11:00 AM"),
        "adams_noon": slot(adams, d, "12:00 PM", "12:30 PM"),
        "adams_0200pm_booked": slot(adams, d, "2:00 PM", "2:30 PM", SlotStatus.BOOKED),
        "adams_tue_booked": slot(adams, d + timedelta(days=1), "9:00 AM", "9:30 AM", SlotStatus.BOOKED),
        "smith_thu": slot(smith, d + timedelta(days=3), "9:00 AM", "9:30 AM"),
        "smith_fri": slot(smith, d + timedelta(days=4), "9:00 AM", "9:30 AM"),
        "smith_sat": slot(smith, d + timedelta(days=5), "9:00 AM", "9:30 AM"),
        "smith_past": slot(smith, date.today() - timedelta(days=7), "9:00 AM", "9:30 AM"),
        "jones_0900": slot(jones, d, "9:00 AM", "9:30 AM"),
    }
    db_session.commit()

    ids = {
        "downtown": downtown.id,
        "uptown": uptown.id,
        "smith": smith.id,
        "adams": adams.id,
        "jones": jones.id,
    }
    ids.update({name: s.id for name, s in slots.items()})
    return ids

def workflow_success(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={"success": True, "processId": 4242, "jobKey": "job-key-1", "state": "Pending"}
    )

@pytest.fixture
def workflow():
    """Booking function stand-in for the orchestrator's outbound call."""
    endpoint = FakeEndpoint(workflow_success)
    app.dependency_overrides[get_workflow_client] = lambda: WorkflowClient(
        url="http://functions.test/workflow-booking",
        api_key="anon-key",
        transport=httpx.MockTransport(endpoint)
    )
    yield endpoint
    app.dependency_overrides.pop(get_workflow_client, None)

def rpa_job_started(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        201,
        json={
            "id": 987654,
            "key": "0c5a0f2e-job",
            "state": "Pending",
            "creationTime": "2025-01-06T14:00:00Z",
            "organizationUnitId": 42
        }
    )

@pytest.fixture
def rpa():
    """RPA process stand-in for the booking function's outbound call."""
    endpoint = FakeEndpoint(rpa_job_started)
    app.dependency_overrides[get_automation_client] = lambda: AutomationClient(
        url="http://rpa.test/MBookingBot1",
        access_token="rpa-token",
        transport=httpx.MockTransport(endpoint)
    )
    yield endpoint
    app.dependency_overrides.pop(get_automation_client, None)

@pytest.fixture
def admin_headers(client):
    response = client.post("/api/v1/admin/login", json={"password": ADMIN_PASSWORD})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
