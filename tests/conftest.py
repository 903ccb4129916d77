import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.dialects.sqlite import base as sqlite_base
from sqlalchemy.orm import sessionmaker

import formpulse.models  # noqa: F401 — register models with Base.metadata
from formpulse.core.config import settings
from formpulse.core.database import Base, get_db
from formpulse.main import app as fastapi_app
from formpulse.services.auth import create_access_token, create_account

# Enable debug mode for tests (allows non-HTTPS cookies in TestClient)
settings.DEBUG = True

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL-specific types (JSONB)
# ---------------------------------------------------------------------------
sqlite_base.SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)

# In-memory SQLite for tests — no PostgreSQL dependency needed
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner(db):
    """An organization owner account."""
    return create_account(db, email="owner@example.com", password="strongpassword123", org_name="Test Org")


@pytest.fixture
def org_id(owner):
    return owner.org_id


@pytest.fixture
def auth_headers(owner) -> dict:
    return {"Authorization": f"Bearer {create_access_token(owner.id)}"}


@pytest.fixture
def other_auth_headers(db) -> dict:
    """Bearer headers for a user of a different organization."""
    other = create_account(db, email="other@example.com", password="strongpassword123", org_name="Other Org")
    return {"Authorization": f"Bearer {create_access_token(other.id)}"}


@pytest.fixture
def client(db):
    """TestClient with overridden DB dependency."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()
