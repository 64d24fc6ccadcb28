"""Engine & Session Factory — builds async engines and session factories.

Invariants:
    - SQLite connections always run with PRAGMA foreign_keys=ON unless disabled,
      so instance references block profile deletion like on PostgreSQL
    - Pool sizing arguments only reach engines with a sized pool (not SQLite)

Design Decisions:
    - Shared by DatabaseSessionManager, alembic and test fixtures
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every new SQLite connection."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_engine(
    database_url: str,
    pool_size: int = 20,
    max_overflow: int = 10,
    echo: bool = False,
    foreign_keys: bool = True,
) -> AsyncEngine:
    """Create an async engine configured for the target dialect."""
    if is_sqlite(database_url):
        engine = create_async_engine(database_url, echo=echo)
        if foreign_keys:
            enable_sqlite_foreign_keys(engine)
        return engine
    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def create_session_factory(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
