"""Pytest configuration and fixtures for sessiongate tests.

Unit tests run against the in-memory revocation store and a frozen clock.
SQL-backed tests use an in-memory SQLite database through aiosqlite, so no
external database is needed.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ["SESSION_SECRET_KEY"] = "test-secret-" + "0" * 40
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["DEBUG"] = "false"
os.environ["LOG_LEVEL"] = "INFO"

TEST_SECRET = os.environ["SESSION_SECRET_KEY"]
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)

MEMBER_ID = str(uuid.UUID("11111111-1111-4111-8111-111111111111"))
OUTSIDER_ID = str(uuid.UUID("22222222-2222-4222-8222-222222222222"))
INACTIVE_ID = str(uuid.UUID("33333333-3333-4333-8333-333333333333"))
ORG_ID = str(uuid.UUID("99999999-9999-4999-8999-999999999999"))


class FrozenClock:
    """Controllable clock; call it to read the time, ``advance`` to move it."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# --- Clock / codec / stores ---


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def codec(clock):
    from sessiongate.services.token_codec import TokenCodec

    return TokenCodec(TEST_SECRET, ttl=timedelta(days=7), clock=clock)


@pytest.fixture
def memory_store(codec, clock):
    from sessiongate.services.memory_ledger import InMemoryRevocationStore

    return InMemoryRevocationStore(codec, clock=clock)


@pytest.fixture
def profiles():
    from sessiongate.services.profiles import StaticProfileDirectory, SubjectProfile

    return StaticProfileDirectory(
        [
            SubjectProfile(
                id=MEMBER_ID,
                email="member@example.com",
                display_name="Member",
                role="editor",
                organization_id=ORG_ID,
            ),
            SubjectProfile(
                id=OUTSIDER_ID,
                email="outsider@example.com",
                display_name="Outsider",
                role="viewer",
                organization_id=None,
            ),
            SubjectProfile(
                id=INACTIVE_ID,
                email="gone@example.com",
                display_name="Gone",
                role="viewer",
                organization_id=ORG_ID,
                is_active=False,
            ),
        ]
    )


@pytest.fixture
def runtime(clock, codec, memory_store, profiles):
    from sessiongate.core import settings
    from sessiongate.services.runtime import build_runtime

    return build_runtime(
        settings,
        codec=codec,
        revocations=memory_store,
        cutoffs=memory_store,
        profiles=profiles,
        clock=clock,
    )


@pytest.fixture
def gatekeeper(runtime):
    return runtime.gatekeeper


@pytest.fixture
def sessions(runtime):
    return runtime.sessions


# --- Database Fixtures ---


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine shared by every session (StaticPool)."""
    from sessiongate.core.database import Base
    from sessiongate.models import Member, RevocationEntry  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def sql_store(db_session_factory, codec):
    from sessiongate.services.revocation import SqlRevocationStore

    return SqlRevocationStore(db_session_factory, codec)


# --- HTTP client ---


@pytest_asyncio.fixture
async def async_client(runtime, db_session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async test client over an app wired to the in-memory runtime."""
    from sessiongate.main import create_app

    app = create_app(runtime=runtime, session_factory=db_session_factory)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def bearer():
    def _headers(credential: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {credential}"}

    return _headers


def pytest_collection_modifyitems(config, items):
    """Mark tests as unit or integration based on the fixtures they use."""
    integration_fixtures = {"db_engine", "db_session_factory", "sql_store", "async_client"}
    for item in items:
        if integration_fixtures & set(getattr(item, "fixturenames", ())):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
