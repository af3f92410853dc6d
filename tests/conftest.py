"""Shared test fixtures for Tala-Audit."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient


API_KEY = "test-admin-api-key"
CLOCK_START = datetime(2025, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def clock(monkeypatch):
    """Deterministic writer clock: each append is one second after the previous."""
    ticks = {"n": 0}

    def fake_now():
        ticks["n"] += 1
        return CLOCK_START + timedelta(seconds=ticks["n"])

    monkeypatch.setattr("tala_audit.audit.service.now_utc", fake_now)
    return fake_now


@pytest.fixture
def app(monkeypatch):
    """Create a test app with in-memory DB."""
    monkeypatch.setenv("TALA_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("TALA_API_KEY", API_KEY)
    monkeypatch.delenv("TALA_DISABLE_AUTH", raising=False)

    # Clear caches and singletons so new env vars take effect
    from tala_audit.common.config import get_settings
    get_settings.cache_clear()

    from tala_audit.deps import reset_singletons
    reset_singletons()

    from tala_audit.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from tala_audit.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


@pytest.fixture
def admin_headers():
    return {"X-Tala-Api-Key": API_KEY}
