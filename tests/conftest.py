"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from passbook.core.config import Settings
from passbook.models import Base, Ticket
from passbook.services.auth import ROLE_MEMBER, ROLE_STAFF, JWTService
from passbook.services.redemption import RedemptionService, get_redemption_service

# 12:00 in Asia/Tokyo
NOW = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


def ticket_fields(**overrides) -> dict:
    """Column values for a fresh 3-use ticket owned by member 1."""
    fields = {
        "member_id": 1,
        "ticket_type": "standard",
        "total_uses": 3,
        "remaining_uses": 3,
        "expires_at": NOW + timedelta(days=30),
    }
    fields.update(overrides)
    if "total_uses" in overrides and "remaining_uses" not in overrides:
        fields["remaining_uses"] = fields["total_uses"]
    return fields


@pytest.fixture
def settings():
    """Create settings instance for testing."""
    return Settings(environment="testing", log_format="console")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database_path(tmp_path):
    """File-backed SQLite database; each session gets its own connection."""
    return tmp_path / "passbook.db"


@pytest_asyncio.fixture
async def session_factory(database_path):
    """Async session factory over a freshly created schema."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    await engine.dispose()


@pytest.fixture
def service(session_factory, clock, settings):
    """Redemption service bound to the test database and clock."""
    return RedemptionService(session_factory, clock=clock, settings=settings)


@pytest.fixture
def make_ticket(session_factory):
    """Insert a ticket directly, bypassing the grant flow."""

    async def _make(**overrides) -> Ticket:
        async with session_factory() as session:
            ticket = Ticket(**ticket_fields(**overrides))
            session.add(ticket)
            await session.commit()
            await session.refresh(ticket)
            return ticket

    return _make


# API fixtures.
#
# TestClient drives the app on its own event loop, so the schema and seed
# rows are written through a synchronous engine on the same database file
# and the app's async engine opens connections on demand.


@pytest.fixture
def seed_ticket(database_path):
    """Synchronously insert tickets for API tests."""
    engine = create_engine(f"sqlite:///{database_path}")
    Base.metadata.create_all(engine)

    def _seed(**overrides) -> Ticket:
        with Session(engine, expire_on_commit=False) as session:
            ticket = Ticket(**ticket_fields(**overrides))
            session.add(ticket)
            session.commit()
            return ticket

    yield _seed

    engine.dispose()


@pytest.fixture
def api_service(database_path, seed_ticket, clock, settings):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{database_path}", poolclass=NullPool
    )
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return RedemptionService(factory, clock=clock, settings=settings)


@pytest.fixture
def app(api_service):
    """Create FastAPI application for testing."""
    from passbook.main import create_app

    app = create_app()
    app.dependency_overrides[get_redemption_service] = lambda: api_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def jwt_service():
    return JWTService()


@pytest.fixture
def member_headers(jwt_service):
    """Build bearer headers for a member."""

    def _headers(member_id: int = 1) -> dict[str, str]:
        token = jwt_service.create_access_token(str(member_id), roles=[ROLE_MEMBER])
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def staff_headers(jwt_service):
    """Build bearer headers for a staff member bound to a store."""

    def _headers(staff_id: int = 100, store_id: int | None = 7) -> dict[str, str]:
        token = jwt_service.create_access_token(
            str(staff_id), roles=[ROLE_STAFF], store_id=store_id
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
