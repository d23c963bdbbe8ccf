"""
Test Configuration and Fixtures

Shared fixtures for Multiguard API tests.
Provides a pinned clock, in-memory stores, an audit logger with an
in-memory sink, an isolated SQLite database and an HTTP client.
"""

from datetime import datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from multiguard.api.access.audit import AuditLogger, MemoryAuditSink
from multiguard.api.access.engine import AccessDecisionEngine
from multiguard.api.auth.mfa import MfaService
from multiguard.api.auth.service import AuthService
from multiguard.api.config import Settings
from multiguard.api.db.models import Base
from multiguard.api.db.session import get_db
from multiguard.api.db.stores import MemoryIdentityStore, MemoryResourceStore
from multiguard.api.dependencies import get_audit_logger, get_request_clock
from multiguard.api.domain import AccountStatus, Identity, Resource, Role
from multiguard.api.main import create_app
from multiguard.api.services.encryption import EncryptionService
from multiguard.api.services.passwords import hash_password
from multiguard.core.clock import FixedClock


TEST_PASSWORD = "Correct-Horse-9"


# ==================== Core Fixtures ====================


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt hash of TEST_PASSWORD, computed once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def clock() -> FixedClock:
    """Clock pinned to 12:00:10 UTC, inside working hours."""
    return FixedClock(datetime(2024, 3, 4, 12, 0, 10, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def test_settings() -> Settings:
    return Settings(
        LOG_ENCRYPTION_KEY="test-log-key",
        LOCKOUT_THRESHOLD=5,
        LOCKOUT_DURATION_MINUTES=15,
        BUSINESS_HOURS_START=9,
        BUSINESS_HOURS_END=17,
        MFA_VALID_WINDOW=1,
    )


@pytest.fixture(scope="function")
def encryption(test_settings) -> EncryptionService:
    return EncryptionService(test_settings.LOG_ENCRYPTION_KEY)


@pytest.fixture(scope="function")
def audit_sink() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture(scope="function")
def audit_logger(audit_sink, encryption, clock) -> AuditLogger:
    return AuditLogger(sink=audit_sink, encryption=encryption, clock=clock)


# ==================== Identity Fixtures ====================


@pytest.fixture(scope="function")
def make_identity(password_hash):
    """Factory for identities sharing TEST_PASSWORD."""
    def _make(**overrides) -> Identity:
        fields = dict(
            id="u-1",
            name="Alice",
            email="alice@example.com",
            password_hash=password_hash,
            role=Role.EMPLOYEE,
            clearance_level=1,
            department="General",
            status=AccountStatus.ACTIVE,
        )
        fields.update(overrides)
        return Identity(**fields)
    return _make


@pytest.fixture(scope="function")
def alice(make_identity) -> Identity:
    return make_identity()


@pytest.fixture(scope="function")
def identity_store(alice) -> MemoryIdentityStore:
    return MemoryIdentityStore([alice])


@pytest.fixture(scope="function")
def auth_service(identity_store, audit_logger, test_settings, clock) -> AuthService:
    return AuthService(identity_store, audit_logger, settings=test_settings, clock=clock)


@pytest.fixture(scope="function")
def mfa_service(identity_store, audit_logger, test_settings, clock) -> MfaService:
    return MfaService(identity_store, audit_logger, settings=test_settings, clock=clock)


# ==================== Resource Fixtures ====================


@pytest.fixture(scope="function")
def resource_store() -> MemoryResourceStore:
    return MemoryResourceStore([
        Resource.create(
            id="r-owned",
            name="Quarterly Plan",
            sensitivity_level="Internal",
            owner_id="u-1",
            shared_with=["u-2"],
        ),
        Resource.create(
            id="r-other",
            name="Board Minutes",
            sensitivity_level="Confidential",
            owner_id="u-9",
        ),
    ])


@pytest.fixture(scope="function")
def engine(resource_store, audit_logger, test_settings, clock) -> AccessDecisionEngine:
    return AccessDecisionEngine(resource_store, audit_logger, settings=test_settings, clock=clock)


# ==================== Database Fixtures ====================


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(async_engine) -> async_sessionmaker:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async with session_maker() as session:
        yield session
        await session.rollback()


# ==================== Application Fixtures ====================


@pytest.fixture(scope="function")
def app(db_session, audit_logger, clock) -> FastAPI:
    """Create FastAPI app with test database, memory audit sink and pinned clock."""
    test_app = create_app()

    async def override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = override_get_db
    test_app.dependency_overrides[get_audit_logger] = lambda: audit_logger
    test_app.dependency_overrides[get_request_clock] = lambda: clock
    return test_app


@pytest_asyncio.fixture(scope="function")
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
