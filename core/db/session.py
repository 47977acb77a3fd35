from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from core.config import config


def engine_options(database_url: str) -> Dict[str, Any]:
    """Backend-specific keyword arguments for create_async_engine.

    PostgreSQL gets a pre-pinged connection pool sized from settings.
    SQLite runs without pooling since every connection opens the same file.
    """
    backend = make_url(database_url).get_backend_name()
    options: Dict[str, Any] = {"echo": False}

    if backend == "postgresql":
        options["pool_size"] = config.DATABASE_POOL_SIZE
        options["max_overflow"] = config.DATABASE_MAX_OVERFLOW
        options["pool_recycle"] = 3600
        options["pool_pre_ping"] = True
    elif backend == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        options["poolclass"] = NullPool

    return options


engine = create_async_engine(config.DATABASE_URL, **engine_options(config.DATABASE_URL))

if make_url(config.DATABASE_URL).get_backend_name() == "sqlite":

    @event.listens_for(engine.sync_engine, "connect")
    def enforce_sqlite_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped database session.

    Anything left uncommitted when the request fails is rolled back, so a
    lifecycle mutation either commits as a whole or not at all.
    """
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
