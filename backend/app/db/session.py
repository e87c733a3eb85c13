"""
Async engine and session factory.

PostgreSQL (asyncpg) is the production store. SQLite (aiosqlite) is accepted
for local runs and tests; because SQLite has no row locks, its transactions
are opened with BEGIN IMMEDIATE so a whole read-validate-write unit holds the
database write lock.
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings

settings = get_settings()


def is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite")


def configure_sqlite_engine(engine: AsyncEngine) -> AsyncEngine:
    """Take over transaction control from the sqlite3 driver."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(url: str, **kwargs) -> AsyncEngine:
    if is_sqlite_url(url):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("timeout", settings.SQLITE_BUSY_TIMEOUT)
        return configure_sqlite_engine(
            create_async_engine(url, connect_args=connect_args, **kwargs)
        )

    options = {"pool_pre_ping": True}
    if "poolclass" not in kwargs:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    options.update(kwargs)
    return create_async_engine(url, **options)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session. Commits on success, rolls back on any error."""
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
