"""
Shared fixtures.

Every test gets a freshly created schema in one in-memory SQLite database
(aiosqlite, pinned to a single connection with StaticPool because an
in-memory database lives and dies with its connection).  HTTP tests talk
to the app through httpx's ASGITransport, which skips the lifespan, so the
session factory the lifespan would build is put on ``app.state`` by the
``async_client`` fixture instead.
Redis is never contacted: with ``cache._redis`` cleared the cached
repository passes every call through to the database.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from subtracker.cache import cache
from subtracker.database import Base, build_session_factory
from subtracker.main import app
from subtracker.middleware import install_query_counter
from subtracker.repositories import SQLAlchemySubscriptionRepository
from subtracker.services.subscription_service import SubscriptionService

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = build_session_factory(engine_test)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Fresh schema per test."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    async with async_session_test() as session:
        yield session


@pytest.fixture
def repository(db_session: AsyncSession) -> SQLAlchemySubscriptionRepository:
    return SQLAlchemySubscriptionRepository(db_session)


@pytest.fixture
def service(repository: SQLAlchemySubscriptionRepository) -> SubscriptionService:
    return SubscriptionService(repository)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    cache._redis = None
    app.state.session_factory = async_session_test
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
