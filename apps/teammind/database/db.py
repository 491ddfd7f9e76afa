"""
Async database engine, session factory and the FastAPI session dependency.

Requests share one ``AsyncSessionLocal`` per call to ``get_db_session``: the
unit of work commits when the route returns, and realtime events queued by
services are delivered only after that commit succeeds.
"""

import logging
import os
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
    AsyncEngine
)
from sqlalchemy.orm import DeclarativeBase
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def build_database_url() -> str:
    """
    DATABASE_URL if set, otherwise a postgresql+asyncpg URL from POSTGRES_* parts.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    user = os.getenv("POSTGRES_USER", "teammind")
    password = os.getenv("POSTGRES_PASSWORD", "teammind")
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    name = os.getenv("POSTGRES_DB", "teammind")
    return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"


DATABASE_URL = build_database_url()

engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=os.getenv("SQL_ECHO", "false").lower() == "true",
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for every teammind table."""
    pass


# Registers the tables on Base.metadata; must follow the Base definition
from teammind.database import models  # noqa: F401, E402
from teammind.services.realtime_manager import publish_pending  # noqa: E402


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Commits on success, rolls back on error. Queued realtime events are
    published after the commit; a rollback drops them.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

        try:
            await publish_pending(session)
        except Exception as e:
            # Already committed; delivery errors are only logged
            logger.error(f"Error publishing realtime events: {e}", exc_info=True)


async def init_database():
    """Create any missing tables (migrations remain the source of truth)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
