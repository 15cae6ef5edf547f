# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# DESIGN DECISION: Async SQLAlchemy Engine
# FastAPI is an async framework, so we use SQLAlchemy's async engine to avoid
# blocking the event loop during database operations:
# - All DB queries use `await` (e.g., `await session.execute(...)`)
# - `asyncpg` is the PostgreSQL driver
# - The store adapter opens one short-lived session per operation
#
# SESSION LIFECYCLE:
# 1. The store calls `async with async_session_factory() as session`
# 2. Reads run and the session closes
# 3. Writes commit explicitly; on exception the transaction rolls back
#
# DESIGN DECISION: Lazy engine creation
# Importing the pipeline (and its tests) must not require a database
# driver or a reachable server. The engine is built on first use.
# =============================================================================

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from finadvisor.config import settings

_async_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_async_engine() -> AsyncEngine:
    """
    Lazily create and cache the async engine.

    - pool_size=5 / max_overflow=10: enough for a single API process.
    - echo follows settings.debug and logs every SQL statement.
    """
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
        )
    return _async_engine


def async_session_factory() -> AsyncSession:
    """
    Return a new AsyncSession.

    expire_on_commit=False: loaded objects stay readable after commit
    without triggering a lazy reload outside the session.
    """
    global _async_session_factory
    if _async_session_factory is None:
        _async_session_factory = async_sessionmaker(
            bind=get_async_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory()

