from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    create_async_engine,
    async_sessionmaker,
    AsyncSession,
)

from ..config.settings import Settings, get_settings


def enable_sqlite_savepoints(engine: AsyncEngine) -> AsyncEngine:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite connections.

    The sqlite3 driver opens transactions lazily, so a SAVEPOINT can become the
    outermost transaction and its RELEASE would commit. Repository writes run in
    savepoints, so SQLite engines need explicit BEGIN handling.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create the AsyncEngine for `settings.database_url`."""
    engine = create_async_engine(
        settings.database_url,
        echo=settings.SQLALCHEMY_ECHO,  # Set to False in production
        pool_pre_ping=True,  # Enables connection health checks
    )
    if engine.dialect.name == "sqlite":
        enable_sqlite_savepoints(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps loaded attributes usable after the caller commits
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# Engine and factory are created on first use, not at import time,
# so importing the package never opens a connection pool.
@lru_cache()
def get_engine() -> AsyncEngine:
    return create_engine_from_settings(get_settings())


@lru_cache()
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return create_session_factory(get_engine())


# Dependency to get DB session
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session and ensures it's closed after the request.

    The session is never committed here; the endpoint that owns the unit of work commits.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            repo = BaseRepository(User, db)
            ...
            await db.commit()
    """
    async with get_session_factory()() as session:
        yield session
