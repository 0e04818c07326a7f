"""
conftest.py — Shared Test Fixtures for the Brand Command Center

Provides an in-memory SQLite database, a FastAPI TestClient with the admin
session overridden, a deterministic credential key, and factories for
clients and integrations.

Business Rules:
- All tests run against an isolated in-memory DB
- Admin auth is overridden for router tests (auth itself is tested separately)
- Each test function gets fresh tables
- Outbound HTTP is never real: tests patch app.http_client.http with MockTransport

Called by: all test files via pytest autodiscovery
Depends on: app.models (Base), app.database (get_db), app.dependencies
"""

import os

os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_URL"] = "http://localhost:8000"
os.environ["INTEGRATION_ENCRYPTION_KEY"] = "0123456789abcdef" * 4
os.environ["ADMIN_JWT_SECRET"] = "test-admin-secret"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["YELP_API_KEY"] = "test-yelp-key"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GOOGLE_SERVICE_ACCOUNT_JSON"] = ""

import httpx
import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.connectors.base import ProviderClient
from app.models import Base, Client, ClientIntegration
from app.services.credential_service import encrypt_config

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default — turn them on."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def test_client_record(db_session: Session) -> Client:
    """A restaurant client with no integrations."""
    record = Client(
        name="Juice Lab",
        slug="juice-lab",
        portal_token="portal-token-juice-lab-0001",
        location="Austin, TX",
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture()
def add_integration(db_session: Session):
    """Factory: attach an encrypted integration to a client."""

    def _add(client: Client, provider: str, config: dict | None = None, enabled: bool = True):
        integration = ClientIntegration(
            client_id=client.id,
            provider=provider,
            config=encrypt_config(config or {}),
            enabled=enabled,
        )
        db_session.add(integration)
        db_session.commit()
        db_session.refresh(integration)
        return integration

    return _add


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """FastAPI TestClient with get_db on the test session and admin auth skipped."""
    from app.database import get_db
    from app.dependencies import require_admin
    from app.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[require_admin] = lambda: {"sub": "admin@test", "role": "admin"}

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def unauthed_client(db_session: Session) -> TestClient:
    """TestClient with the real admin and cron dependencies."""
    from app.database import get_db
    from app.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def admin_cookie() -> dict:
    token = jwt.encode({"sub": "admin@test", "role": "admin"}, "test-admin-secret", algorithm="HS256")
    return {"miu_admin_session": token}


# ── HTTP mocking ─────────────────────────────────────────────────────


@pytest.fixture()
def mock_http(monkeypatch):
    """Route app.http_client.http through a MockTransport.

    Call with a handler `(httpx.Request) -> httpx.Response`; returns the list
    of requests seen.
    """
    seen: list[httpx.Request] = []

    def _install(handler):
        def _recording(request: httpx.Request):
            seen.append(request)
            return handler(request)

        monkeypatch.setattr(
            "app.http_client.http",
            httpx.AsyncClient(transport=httpx.MockTransport(_recording)),
        )
        return seen

    return _install


class FakeProvider(ProviderClient):
    """Provider double: returns a fixed output or raises a fixed error."""

    def __init__(self, provider: str, output=None, error: Exception | None = None, delay: float = 0):
        super().__init__(timeout=5)
        self.provider = provider
        self.output = output
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []

    async def sync(self, config: dict):
        import asyncio

        self.calls.append(config)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture()
def fake_provider():
    return FakeProvider
