"""
conftest.py - Shared pytest fixtures for the Shift Report API test suite.

Every test runs against JSON-file stores under pytest's tmp_path; no MongoDB,
SMTP server or Celery broker is needed. API tests go through FastAPI's
TestClient with app.dependency_overrides pointing at those stores.
"""

import pytest
from fastapi.testclient import TestClient

from main import (
    app,
    get_employee_directory,
    get_mail_transport,
    get_report_store,
    get_session_store,
    get_settings,
    hash_password,
)
from schemas import Employee, Identity
from sessions import SessionStore
from settings import Settings
from store import JsonEmployeeDirectory, JsonReportStore


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path, summary_recipient="boss@example.com")


@pytest.fixture
def report_store(tmp_path):
    return JsonReportStore(tmp_path / "reports.json")


@pytest.fixture
def directory(tmp_path):
    """
    Employee directory seeded with:
      m1 - manager "Mona"
      e1 - employee "Ali"
      e2 - employee "Sara"
    All passwords are "secret".
    """
    d = JsonEmployeeDirectory(tmp_path / "employees.json")
    d.add(Employee(id="m1", username="mona", full_name="Mona", role="manager",
                   password_hash=hash_password("secret")))
    d.add(Employee(id="e1", username="ali", full_name="Ali", role="employee",
                   password_hash=hash_password("secret")))
    d.add(Employee(id="e2", username="sara", full_name="Sara", role="employee",
                   password_hash=hash_password("secret")))
    return d


@pytest.fixture
def manager():
    return Identity(id="m1", name="Mona", role="manager")


@pytest.fixture
def ali():
    return Identity(id="e1", name="Ali", role="employee")


@pytest.fixture
def sara():
    return Identity(id="e2", name="Sara", role="employee")


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

class RecordingTransport:
    """Stands in for SMTP; keeps every message handed to it."""

    def __init__(self):
        self.messages = []

    def send(self, message):
        self.messages.append(message)
        return message["Message-ID"]


@pytest.fixture
def sessions():
    return SessionStore()


@pytest.fixture
def client(settings, report_store, directory, sessions):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_report_store] = lambda: report_store
    app.dependency_overrides[get_employee_directory] = lambda: directory
    app.dependency_overrides[get_session_store] = lambda: sessions
    app.dependency_overrides[get_mail_transport] = lambda: None
    yield TestClient(app)
    app.dependency_overrides.clear()


def login(client, username, password="secret"):
    res = client.post("/api/auth/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return {"Authorization": f"Bearer {res.json()['token']}"}


@pytest.fixture
def auth(client):
    """auth("ali") -> Authorization header for a fresh session."""
    return lambda username, password="secret": login(client, username, password)


@pytest.fixture
def transport():
    return RecordingTransport()
