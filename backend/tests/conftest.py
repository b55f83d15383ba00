"""
Central pytest configuration for the salon backend tests.

Environment is configured before any ``salon`` import so the lazily created
engine points at a shared in-memory SQLite database and rate limiting is off.
"""

import os

# Test database configuration (set early so the lazy engine uses it)
TEST_DATABASE_URL = "sqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests
os.environ["LOG_TO_FILE"] = "0"
os.environ["FLASK_ENV"] = "testing"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-for-the-salon-suite"

from zoneinfo import ZoneInfo  # noqa: E402

import pytest  # noqa: E402

from salon.core import config as app_config  # noqa: E402
from salon.core.security import create_principal_token  # noqa: E402
from salon.db.session import SessionLocal, create_tables, drop_tables  # noqa: E402
from tests.config.markers import pytest_collection_modifyitems, pytest_configure  # noqa: E402,F401


@pytest.fixture(autouse=True)
def business_timezone(monkeypatch):
    """Pin the business timezone to UTC unless a test overrides it."""
    monkeypatch.setattr(app_config, "APP_TZ", ZoneInfo("UTC"))
    return app_config


@pytest.fixture
def db_session():
    """Session on a freshly created schema; tables are dropped afterwards."""
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        drop_tables()


@pytest.fixture
def app():
    from salon.main import create_app

    create_tables()
    flask_app = create_app()
    flask_app.config["TESTING"] = True
    yield flask_app
    drop_tables()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a principal: ``auth_headers("admin")``."""

    def _make(role: str = "admin", user_id: int = 1) -> dict:
        token = create_principal_token(user_id, role)
        return {"Authorization": f"Bearer {token}"}

    return _make
