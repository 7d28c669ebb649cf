"""Async database session and engine configuration."""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from dealheat.config import settings


def enable_sqlite_transactions(engine: AsyncEngine) -> AsyncEngine:
    """Let SQLAlchemy own BEGIN on SQLite so SAVEPOINTs behave.

    The sqlite3 driver otherwise defers BEGIN until the first DML statement,
    which breaks nested transactions. BEGIN IMMEDIATE takes the write lock up
    front so concurrent vote transactions queue instead of deadlocking.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _do_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    is_sqlite = database_url.startswith("sqlite")

    # SQLite doesn't support pool_size / max_overflow / pool_pre_ping
    engine_kwargs: dict = {"echo": False}
    if not is_sqlite:
        engine_kwargs.update(pool_size=20, max_overflow=10, pool_pre_ping=True)
    engine_kwargs.update(kwargs)

    new_engine = create_async_engine(database_url, **engine_kwargs)
    if is_sqlite:
        enable_sqlite_transactions(new_engine)
    return new_engine


engine = build_engine(settings.DATABASE_URL)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
