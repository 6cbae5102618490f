import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from dashboard.config import config
from dashboard.database.core import Base
from dashboard.database import models  # noqa: F401


@pytest.fixture(autouse=True)
def no_latency(monkeypatch):
    monkeypatch.setattr(config, "LATENCY_MIN_MS", 0)
    monkeypatch.setattr(config, "LATENCY_MAX_MS", 0)


@pytest_asyncio.fixture
async def async_session():
    # Use in-memory SQLite for tests
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    await engine.dispose()
