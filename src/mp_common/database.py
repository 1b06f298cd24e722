"""Async engine and session factory.

Every connection carries a server-side statement_timeout so no single
statement can hang a request; the pool_timeout bounds waiting for a
connection. Both surface as StorageUnavailableError via storage_errors().
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
    pool_timeout=10,
    connect_args={
        "server_settings": {"statement_timeout": str(settings.DB_STATEMENT_TIMEOUT_MS)},
    },
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session
