# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# Keep the retry scheduler out of the test process
os.environ.setdefault("OUTBOX_ENABLED", "false")
os.environ.setdefault("DATA_STORE_BACKEND", "memory")

from datetime import datetime, timedelta, timezone
from typing import Generator
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from core.identity import load_principal
from core.store import InMemoryDataStore
from dependencies.auth import get_current_user
from dependencies.services import get_clock, get_outbox
from dependencies.store import get_data_store
from main import create_app
from models.principal import Tenancy
from models.vendor import Vendor
from services.assignment import AssignmentResolver
from services.outbox import NotificationOutbox
from services.public_links import PublicLinkIssuer
from services.request_lifecycle import RequestLifecycle


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


# -------------------------------------------------
# Store + identities
# -------------------------------------------------
@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryDataStore:
    """
    Two properties:
        prop-1 (unit-101, unit-102): owned by landlord-1, managed by pm-1
        prop-2 (unit-201):           managed by pm-2
    """
    s = InMemoryDataStore()
    s.add_property("prop-1", name="Kailua Gardens", unit_ids=["unit-101", "unit-102"])
    s.add_property("prop-2", name="Makiki Towers", unit_ids=["unit-201"])

    s.add_user("admin-1", "admin", email="admin@example.com")
    s.add_user("landlord-1", "landlord", owned=["prop-1"], full_name="Lani Landlord")
    s.add_user("pm-1", "propertymanager", managed=["prop-1"], full_name="Pat Manager")
    s.add_user("pm-2", "property_manager", managed=["prop-2"])
    s.add_user("tenant-1", "tenant", tenancies=[Tenancy(property_id="prop-1", unit_id="unit-101")])
    s.add_user("tenant-2", "tenant", tenancies=[Tenancy(property_id="prop-1", unit_id="unit-102")])
    s.add_user("vendor-user-1", "vendor", vendor_id="vendor-1", email="ops@alohaplumbing.test")
    s.add_user("vendor-user-2", "vendor", vendor_id="vendor-2")

    s.add_vendor(Vendor(id="vendor-1", name="Aloha Plumbing", services=frozenset({"plumbing"})))
    s.add_vendor(Vendor(id="vendor-2", name="Island Electric", services=frozenset({"electrical"})))
    return s


@pytest.fixture
def admin(store):
    return load_principal(store, "admin-1")


@pytest.fixture
def landlord(store):
    return load_principal(store, "landlord-1")


@pytest.fixture
def pm(store):
    return load_principal(store, "pm-1")


@pytest.fixture
def other_pm(store):
    return load_principal(store, "pm-2")


@pytest.fixture
def tenant(store):
    return load_principal(store, "tenant-1")


@pytest.fixture
def other_tenant(store):
    return load_principal(store, "tenant-2")


@pytest.fixture
def vendor_user(store):
    return load_principal(store, "vendor-user-1")


# -------------------------------------------------
# Services
# -------------------------------------------------
@pytest.fixture
def lifecycle(store, clock) -> RequestLifecycle:
    return RequestLifecycle(store, clock)


@pytest.fixture
def resolver(store, clock) -> AssignmentResolver:
    return AssignmentResolver(store, clock)


@pytest.fixture
def tokens():
    """Deterministic token generator: tok-1, tok-2, ..."""
    counter = {"n": 0}

    def generate():
        counter["n"] += 1
        return f"tok-{counter['n']}"

    return generate


@pytest.fixture
def issuer(store, clock, tokens) -> PublicLinkIssuer:
    return PublicLinkIssuer(store, clock, token_generator=tokens)


@pytest.fixture
def new_request(lifecycle, tenant):
    """A unit-scoped request filed by tenant-1, status `new`, version 1."""
    return lifecycle.create_request(
        tenant,
        {"property_id": "prop-1", "unit_id": "unit-101", "title": "Leaking faucet", "category": "plumbing"},
    )


# -------------------------------------------------
# API
# -------------------------------------------------
@pytest.fixture
def webhook_sink():
    return Mock(return_value=True)


@pytest.fixture
def outbox(webhook_sink) -> NotificationOutbox:
    return NotificationOutbox(sink=webhook_sink, max_attempts=3)


@pytest.fixture
def current_principal():
    """Holder the auth override reads from; tests set ["user"]."""
    return {"user": None}


@pytest.fixture(scope="function")
def app(store, clock, outbox, current_principal):
    """Create a test FastAPI application instance."""
    application = create_app()
    application.dependency_overrides[get_data_store] = lambda: store
    application.dependency_overrides[get_clock] = lambda: clock
    application.dependency_overrides[get_outbox] = lambda: outbox
    application.dependency_overrides[get_current_user] = lambda: current_principal["user"]
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(store, current_principal):
    """login("pm-1") → subsequent API calls run as that user."""
    def _login(user_id: str):
        current_principal["user"] = load_principal(store, user_id)
        return current_principal["user"]

    return _login


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client
