"""Shared test fixtures and utilities for all tests.

Provides an isolated environment per test, an in-memory SQLite analytics
store and a FastAPI test client bound to the real application.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

# Ensure the project root is first in sys.path
project_root = str(Path(__file__).parent.parent.absolute())
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest
from fastapi.testclient import TestClient

from quickqr.lib.database import Base, get_engine, get_session_factory, reset_engine
from quickqr.models.usage_event import UsageEvent

# Environment variables the application reads; cleared for every test
APP_ENV_VARS = (
    'ANALYTICS_DATABASE_URL',
    'ANALYTICS_DATABASE_PASSWORD',
    'ADMIN_DASHBOARD_KEY',
    'ANALYTICS_IP_SALT',
    'QUICKQR_API_URL',
    'QUICKQR_STATE_FILE',
)


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Start every test with analytics unconfigured and the dashboard open."""
    for name in APP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def admin_key(monkeypatch):
    """Configure a dashboard key and return it."""
    key = 'test-admin-key'
    monkeypatch.setenv('ADMIN_DASHBOARD_KEY', key)
    return key


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def analytics_db(monkeypatch):
    """In-memory SQLite analytics store with the schema created.

    Returns the global session factory, so tests and the app share data.
    """
    monkeypatch.setenv('ANALYTICS_DATABASE_URL', 'sqlite://')
    reset_engine()
    Base.metadata.create_all(get_engine())
    return get_session_factory()


@pytest.fixture
def insert_event(analytics_db):
    """Insert a UsageEvent directly, bypassing the API.

    ``created_at`` must be timezone-aware; it is stored as UTC.
    """

    def _insert(event_type, session_id='session-1', payload=None, created_at=None):
        created_at = created_at or datetime.now(timezone.utc)
        with analytics_db() as session:
            row = UsageEvent(
                event_type=event_type,
                session_id=session_id,
                payload=payload or {},
                ip_hash='0' * 64,
                created_at=created_at.astimezone(timezone.utc),
            )
            session.add(row)
            session.commit()
            return row.id

    return _insert


# ============================================================================
# FastAPI Application Fixtures
# ============================================================================

@pytest.fixture
def client():
    """Test client for the real app (lifespan is not run)."""
    from quickqr.app import app

    return TestClient(app)
