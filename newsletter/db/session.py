from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from newsletter.config import DatabaseSettings


def get_connection_pool(config: DatabaseSettings) -> AsyncEngine:
    """Build the async engine (connection pool) for the configured database.

    Connections are opened lazily, on first use.
    """
    return create_async_engine(
        config.with_db(),
        echo=False,
        pool_pre_ping=True,
        pool_timeout=2,
    )


def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
