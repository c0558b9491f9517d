"""
Centralized Test Configuration.

Every test gets its own in-memory database, a MockRedis and dependency
overrides pointing the app at both.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from logitrack.app.main import app
from logitrack.app.db.session import get_db, Base
from logitrack.app.core.redis_client import get_redis
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.enums import UserRole
from logitrack.app.services import badges
import logitrack.app.core.redis_client as redis_client_module
from logitrack.tests.factories import make_user

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.failing = False

    def _check(self):
        if self.failing:
            raise RedisConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        return True

    async def delete(self, key):
        self._check()
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, monkeypatch):
    """Point the app at the test database and the mock Redis."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)
    badges.reset_last_known()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    app.dependency_overrides = {}
    badges.reset_last_known()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Data fixtures

@pytest.fixture
async def admin(db_session):
    return await make_user(db_session, "admin", UserRole.ADMIN, first_name="Amina", last_name="Benali")


@pytest.fixture
async def manager(db_session):
    return await make_user(db_session, "manager", UserRole.MANAGER, first_name="Karim", last_name="Haddad")


@pytest.fixture
async def driver(db_session):
    return await make_user(db_session, "livreur1", UserRole.DRIVER, first_name="Youssef", last_name="Amrani",
                           zone="Centre", vehicle="Scooter")


@pytest.fixture
async def driver2(db_session):
    return await make_user(db_session, "livreur2", UserRole.DRIVER, first_name="Sara", last_name="Idrissi")


@pytest.fixture
async def client_row(db_session):
    row = Client(name="Boutique Atlas", city="Casablanca")
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row


@pytest.fixture
async def company_row(db_session):
    row = Company(name="Express Partenaire")
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    return row
