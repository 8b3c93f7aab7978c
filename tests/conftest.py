"""
Test infrastructure for the board API.

Strategy
--------
- SQLite in-memory via aiosqlite; no Postgres needed.
- StaticPool keeps every session on the one connection that owns the
  in-memory database.
- ``get_db`` is overridden so requests use the test session factory.
- Tables are created before and dropped after each test that touches the
  database (``db_session`` / ``async_client``).  Pure-function tests do not
  pay for it.
- Redis is disabled by setting ``cache._redis = None``; ``CacheManager``
  treats that as a permanent miss.
"""
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from board.cache import cache
from board.database import Base, get_db
from board.main import app
from board.middleware import install_query_counter

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            cache.discard_pending_invalidations(session)
            await session.rollback()
            raise
        await cache.apply_pending_invalidations(session)


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def setup_db():
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(setup_db) -> AsyncSession:
    """A live session for service-level tests; never committed."""
    cache._redis = None
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(setup_db) -> AsyncClient:
    cache._redis = None
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
