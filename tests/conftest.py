# tests/conftest.py
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stock_sync.core.config import Settings, StockApiConfig
from stock_sync.database import Base
from stock_sync.services.event_log import EventLog
from stock_sync import models  # noqa: F401  registers the tables

# In-memory database shared by every connection of one engine
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings(tmp_path):
    """Provide test settings"""
    return Settings(
        DATABASE_URL=TEST_DATABASE_URL,
        STOCK_API_URL="https://api.example.test/report/stock/all",
        STOCK_API_ENTITY_BASE_URL="https://api.example.test",
        STOCK_API_TOKEN="test-token",
        WAREHOUSES_FILE=str(tmp_path / "warehouses.txt"),
        SYNC_LOG_FILE=str(tmp_path / "logs" / "sync.log"),
        SYNC_SCHEDULE_ENABLED=False,
        BASIC_AUTH_USERNAME="admin",
        BASIC_AUTH_PASSWORD="secret",
    )


@pytest.fixture
def api_config():
    return StockApiConfig(
        url="https://api.example.test/report/stock/all",
        entity_base_url="https://api.example.test",
        token="test-token",
    )


@pytest.fixture
def event_log(tmp_path):
    return EventLog(tmp_path / "logs" / "sync.log")


@pytest.fixture(scope="function")
async def test_engine():
    """Create and configure the test database engine (function-scoped)."""
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Provide a database session for tests"""
    async_session_local = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_local() as session:
        yield session
        await session.rollback()
