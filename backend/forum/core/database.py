# backend/forum/core/database.py
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from forum.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped database session."""
    async with async_session_factory() as session:
        yield session


async def init_db() -> None:
    """Create any missing tables. Fails loudly if the database is unreachable."""
    from forum.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
