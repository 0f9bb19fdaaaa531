"""Database session configuration.

Engines and session factories are built by the container factory at startup
and handed to the adapters that need them. Nothing here connects at import time.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from mailwise.core.config import Settings


def build_async_engine(settings: Settings) -> AsyncEngine:
    """Create the application's async engine.

    Pool timeout behavior:
    - pool_timeout=30: wait up to 30 seconds for a connection to become available
    - if all connections stay busy longer, a TimeoutError surfaces to the caller
    """
    connect_args: dict = {
        "server_settings": {
            # Kill idle transactions after 5 minutes
            "idle_in_transaction_session_timeout": "300000",
        },
        "command_timeout": 60,
    }
    if settings.POSTGRES_SSLMODE == "disable":
        connect_args["ssl"] = False

    return create_async_engine(
        str(settings.SQLALCHEMY_ASYNC_DATABASE_URI),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_timeout=30,
        isolation_level="READ COMMITTED",
        connect_args=connect_args,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to *engine*."""
    return async_sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Open a session from *session_factory* and always close it.

    Example:
    -------
        async with session_scope(factory) as db:
            await db.execute(...)

    """
    async with session_factory() as db:
        try:
            yield db
        finally:
            await db.close()
