from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from dashboard.config import config


def build_engine(url: str = None) -> AsyncEngine:
    """Create an engine; in-memory SQLite shares one connection so the data survives between sessions."""
    url = url or config.STORE_URL
    if ":memory:" in url:
        return create_async_engine(url, echo=False, poolclass=StaticPool)
    return create_async_engine(url, echo=False)

engine = build_engine()

AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

class Base(DeclarativeBase):
    pass

async def init_store(bind: AsyncEngine = None):
    """Create all tables on the given engine (default: module engine)."""
    from dashboard.database import models  # noqa: F401  registers tables on Base.metadata

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
