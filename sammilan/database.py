"""
Database connection and session management.

Postgres via asyncpg in deployment; tests plug in their own engine through
the `get_db` dependency. Donation writes commit individually in the store,
so a session here only has to roll back whatever an error left open.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from sammilan.config import settings

logger = logging.getLogger(__name__)


def create_engine_if_configured() -> Optional[AsyncEngine]:
    """Create the async engine, or None when DATABASE_URL is empty."""
    if not settings.database_url:
        logger.warning("DATABASE_URL not configured. Donation storage disabled.")
        return None
    
    # asyncpg rejects libpq's sslmode; SSL is passed through connect_args
    url = make_url(settings.database_url).difference_update_query(["sslmode"])
    
    engine_kwargs: Dict[str, Any] = {"echo": settings.debug}
    if url.get_backend_name() == "postgresql":
        engine_kwargs.update(
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
            connect_args={"ssl": settings.database_ssl},
        )
    
    return create_async_engine(url, **engine_kwargs)


engine = create_engine_if_configured()

async_session_maker = (
    async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    if engine
    else None
)


class Base(DeclarativeBase):
    """Declarative base for the donation models."""
    pass


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Session for workers and scripts; rolled back if the block raises."""
    if not async_session_maker:
        raise RuntimeError("Database not configured. Set DATABASE_URL environment variable.")
    
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency wrapping get_db_context."""
    async with get_db_context() as session:
        yield session


async def init_db() -> None:
    """Initialize database tables."""
    if not engine:
        logger.warning("Skipping database initialization - DATABASE_URL not configured")
        return
    
    # Register models on the metadata
    import sammilan.models  # noqa: F401
    
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    if engine:
        await engine.dispose()
