"""
Schools24 Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine, session factory, schema bootstrap and the
       FastAPI session dependency.
How:   One async engine with a bounded pool; each request gets its own
       session which commits on success and rolls back on error.
Who:   Route handlers via Depends(get_db_session); the lifespan handler for
       init_models() / dispose_engine(); alembic via Base.metadata.

Connection Pooling:
    pool_size=DB_MAX_CONNECTIONS (default 10) persistent connections
    max_overflow=DB_MAX_OVERFLOW  temporary connections for spikes
    pool_pre_ping                 validates connections before use
    pool_recycle=3600             recycles connections hourly

    SQLite URLs (tests, local demos) get the driver's default pool instead;
    pool sizing arguments are PostgreSQL-only.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_size=settings.db_max_connections,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(
    settings.database_url, **_engine_options(settings.database_url)
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All tables register on Base.metadata, which drives both the startup
    bootstrap (init_models) and alembic autogenerate.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)

    Every write a handler performs therefore lands atomically: a payment
    and its fee update, or a user and its student profile, commit together.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def init_models(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates every table and index that does not exist yet.
    When:  Application startup, before the first request.
    How:   metadata.create_all with checkfirst semantics (CREATE IF NOT EXISTS).
           Alembic revisions remain the path for altering existing tables.
    """
    # Register every model on Base.metadata
    import app.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%d tables)", len(Base.metadata.tables))


async def ping_database(bind: AsyncEngine = engine) -> bool:
    """Runs SELECT 1; returns False when the database is unreachable."""
    try:
        async with bind.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Database ping failed: %s", str(e))
        return False


async def dispose_engine() -> None:
    """Closes all pooled connections during application shutdown."""
    await engine.dispose()
