"""
Centralized Test Configuration.
"""

import itertools

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleet_backend.app.main import app
from fleet_backend.app.db.session import get_db, Base
from fleet_backend.app.core.identity import IdentityResolver
from fleet_backend.app.models.enums import UserRole, AccountStatus
from fleet_backend.app.models.user import User
from fleet_backend.app.models.vehicle import Vehicle
from fleet_backend.app.models.vehicle_enums import VehicleStatus
from fleet_backend.app.models.vehicle_assignment import VehicleAssignment
import fleet_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.broken = False

    def _check(self):
        if self.broken:
            raise ConnectionError("redis unavailable")

    async def ping(self):
        return not self.broken

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        return True

    async def delete(self, key):
        self._check()
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        self._check()
        return 1 if key in self.store else 0


@pytest.fixture
def mock_redis(monkeypatch):
    redis = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", redis)
    return redis


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Fresh schema, dependency overrides and resolver for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    original_resolver = app.state.identity_resolver
    app.dependency_overrides[get_db] = override_get_db
    app.state.identity_resolver = IdentityResolver(TestingSessionLocal)

    yield

    app.dependency_overrides = {}
    app.state.identity_resolver = original_resolver
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing. Redirects are not followed."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def session_factory():
    return TestingSessionLocal


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """Factory creating a committed user with the given role and status."""
    counter = itertools.count(1)

    async def _make(role: UserRole = UserRole.DRIVER, status: AccountStatus = AccountStatus.ACTIVE, name: str = None):
        n = next(counter)
        username = name or f"{role.value}{n}"
        user = User(
            email=f"{username}@fleet.test",
            username=username,
            full_name=f"{role.value.title()} {n}",
            role=role,
            status=status,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_vehicle(db_session):
    async def _make(plate: str, status: VehicleStatus = VehicleStatus.ACTIVE, model: str = "Sprinter"):
        vehicle = Vehicle(plate=plate, model=model, status=status)
        db_session.add(vehicle)
        await db_session.commit()
        await db_session.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def assign(db_session):
    """Insert an assignment edge directly, bypassing the service layer."""
    async def _assign(vehicle, driver, by):
        assignment = VehicleAssignment(vehicle_id=vehicle.id, driver_id=driver.id, assigned_by_user_id=by.id)
        db_session.add(assignment)
        await db_session.commit()
        await db_session.refresh(assignment)
        return assignment

    return _assign
