"""Async engine and transactional sessions for the release store.

Hey future me - one Database per process. Scan runs hold ONE session for the whole
scan (entity updates + bulk insert commit together), the dispatcher opens its own
afterwards. Everything goes through session_scope().
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from releasewatch.config import Settings
from releasewatch.config.settings import DatabaseSettings

logger = logging.getLogger(__name__)

# Milliseconds SQLite waits on a locked file. The scan worker writes while API
# readiness probes and manual scans read.
SQLITE_BUSY_TIMEOUT_MS = 30_000


def _engine_options(db_settings: DatabaseSettings) -> dict[str, Any]:
    url = make_url(db_settings.url)
    options: dict[str, Any] = {
        "echo": db_settings.echo,
        "pool_pre_ping": db_settings.pool_pre_ping,
    }

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            # In-memory DB lives inside one connection. Share it or each session sees nothing.
            options["poolclass"] = StaticPool
        return options

    options.update(
        pool_size=db_settings.pool_size,
        max_overflow=db_settings.max_overflow,
        pool_timeout=db_settings.pool_timeout,
        pool_recycle=db_settings.pool_recycle,
    )
    return options


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine = create_async_engine(
            settings.database.url, **_engine_options(settings.database)
        )
        if self.dialect_name == "sqlite":
            self._tune_sqlite()

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def _tune_sqlite(self) -> None:
        @event.listens_for(self._engine.sync_engine, "connect")
        def on_connect(dbapi_conn: Any, _connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
            cursor.close()

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Commit when the block exits cleanly, roll back and re-raise otherwise."""
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """SELECT 1 for the readiness probe. Never raises."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return True

    async def close(self) -> None:
        await self._engine.dispose()

    async def create_tables(self) -> None:
        """create_all for tests and local dev. Production runs `alembic upgrade head`."""
        from releasewatch.infrastructure.persistence.models import Base

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


__all__ = ["Database"]
