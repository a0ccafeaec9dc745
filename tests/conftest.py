"""Shared pytest fixtures."""
from __future__ import annotations

import os

# Minimal env for modules that read configuration at import time
os.environ.setdefault("DATABASE_URL", "postgresql://localhost/logiflow_test")
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RATE_LIMIT_REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)

from urllib.parse import urlparse

import pytest
from fastapi.testclient import TestClient

from app.api.auth import issue_token
from app.core.config import EmailConfig, Settings
from app.core.notifications import InMemoryPubSub, NotificationBus
from app.domain.entities import AuthUser
from app.integrations.email_notifier import EmailNotifier
from app.services import NotificationDispatcher, OfferLifecycleManager, ShipmentLifecycleManager
from tests.fakes import InMemoryDatabase

TEST_SECRET = "test-secret"

SHIPMENT_FIELDS = {
    "service_type": "transport",
    "description": "Pallet of ceramic tiles",
    "weight": 420.5,
    "dimensions": {"length": 120, "width": 80, "height": 95},
    "pickup_address": "12 Harbour Rd, Rotterdam",
    "pickup_date": "2026-11-02T09:00:00Z",
    "delivery_address": "5 Rue de Lyon, Paris",
    "delivery_date": "2026-11-05T17:00:00Z",
    "required_documents": ["CMR", "Invoice"],
    "notes": "Fragile",
}


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_url="postgresql://localhost/logiflow_test",
        auth_secret=TEST_SECRET,
        email=EmailConfig(resend_api_key=None, email_from="test@logiflow.dev"),
        live_poll_interval=0.05,
        rate_limit_enabled=False,
        environment="test",
    )


@pytest.fixture()
def fake_db() -> InMemoryDatabase:
    return InMemoryDatabase()


def _auth_user(db: InMemoryDatabase, email: str, name: str, role: str) -> AuthUser:
    return AuthUser(user_id=db.add_user(email, name, role), role=role)


@pytest.fixture()
def client_user(fake_db) -> AuthUser:
    return _auth_user(fake_db, "client@example.com", "Carla Client", "client")


@pytest.fixture()
def other_client(fake_db) -> AuthUser:
    return _auth_user(fake_db, "other@example.com", "Oscar Other", "client")


@pytest.fixture()
def agent_user(fake_db) -> AuthUser:
    return _auth_user(fake_db, "agent1@example.com", "Alice Agent", "agent")


@pytest.fixture()
def second_agent(fake_db) -> AuthUser:
    return _auth_user(fake_db, "agent2@example.com", "Bruno Broker", "agent")


@pytest.fixture()
def bus() -> NotificationBus:
    return NotificationBus(InMemoryPubSub())


@pytest.fixture()
def email_notifier() -> EmailNotifier:
    return EmailNotifier(api_key=None)


@pytest.fixture()
def dispatcher(fake_db, bus) -> NotificationDispatcher:
    return NotificationDispatcher(fake_db, bus)


@pytest.fixture()
def shipments(fake_db) -> ShipmentLifecycleManager:
    return ShipmentLifecycleManager(fake_db)


@pytest.fixture()
def offers(fake_db, dispatcher, email_notifier) -> OfferLifecycleManager:
    return OfferLifecycleManager(fake_db, dispatcher, email_notifier)


@pytest.fixture()
def shipment_fields() -> dict:
    return {**SHIPMENT_FIELDS, "dimensions": dict(SHIPMENT_FIELDS["dimensions"])}


@pytest.fixture()
def api_client(fake_db, settings, bus, email_notifier):
    from app.api.api_server import create_api_app
    from app.api.marketplace import set_services

    app = create_api_app(fake_db, settings, bus=bus, email_notifier=email_notifier)
    with TestClient(app) as client:
        yield client
    set_services(None)


@pytest.fixture()
def auth_headers():
    def _headers(user: AuthUser) -> dict[str, str]:
        token = issue_token(TEST_SECRET, user.user_id, user.role, 3600)
        return {"Authorization": f"Bearer {token}"}

    return _headers


# PostgreSQL-backed fixtures


def _is_safe_db_url(db_url: str) -> bool:
    """Allow only local/test hosts unless explicitly overridden."""
    host = (urlparse(db_url).hostname or "").lower()
    return host in {"localhost", "127.0.0.1", "postgres", "db"}


@pytest.fixture(scope="session")
def postgres_db():
    """Session-scoped PostgreSQL database handle."""
    db_url = os.getenv("TEST_DATABASE_URL")
    if not db_url:
        pytest.skip("TEST_DATABASE_URL is required for PostgreSQL tests")
    if not _is_safe_db_url(db_url) and os.getenv("ALLOW_TEST_DB_RESET") != "1":
        pytest.skip(
            "Refusing to run DB tests against non-local database. "
            "Set ALLOW_TEST_DB_RESET=1 to override."
        )

    from database_pg_module import Database

    db = Database(db_url)
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def pg_db(postgres_db):
    """Function-scoped PostgreSQL database with empty tables."""
    with postgres_db.get_connection() as conn:
        conn.cursor().execute(
            "TRUNCATE TABLE notifications, offers, shipments, users RESTART IDENTITY CASCADE"
        )
    return postgres_db
