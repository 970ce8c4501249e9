"""
Local SQLite store for the offline inventory core.

One LocalStore instance owns one engine and is shared by every service;
the application factory creates it and closes it on shutdown.

Optimized for:
- Async operations via aiosqlite
- One transaction per store call (run)
- Forward-only migrations on open, rebuild on unknown newer schema
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Callable, Optional, TypeVar

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool, StaticPool

from sign_inventory.core.db.migrations import (
    SCHEMA_VERSION,
    destroy_schema,
    get_schema_version,
    run_migrations,
)
from sign_inventory.core.exceptions import (
    DatabaseError,
    SchemaVersionConflict,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _get_engine_options(database_url: str) -> dict:
    """
    Get engine options for the SQLite URL.
    NullPool for files (aiosqlite does not pool), StaticPool for :memory:
    so every session sees the same database.
    """
    options = {"echo": False, "future": True}

    if ":memory:" in database_url:
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["poolclass"] = NullPool

    return options


def _configure_sqlite_connection(dbapi_connection, connection_record):
    """
    Configure every new SQLite connection.

    - WAL mode: readers do not block the writer
    - busy_timeout: wait for locks instead of failing immediately
    - foreign_keys: enforce referential integrity
    - synchronous=NORMAL: safe with WAL, faster than FULL
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


class LocalStore:
    """
    Versioned, transactional local database.

    Usage:
        store = LocalStore("sqlite+aiosqlite:///data/sign_inventory.db")
        await store.open()
        count = await store.run(lambda db: db.query(SyncQueueEntry).count())
        await store.close()
    """

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._open_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def db_path(self) -> Optional[Path]:
        """Path of the SQLite file, or None for an in-memory store."""
        database = make_url(self.database_url).database
        if not database or database == ":memory:":
            return None
        return Path(database)

    def _create_engine(self) -> AsyncEngine:
        if self.db_path is not None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_async_engine(
            self.database_url, **_get_engine_options(self.database_url)
        )

        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            _configure_sqlite_connection(dbapi_connection, connection_record)

        return engine

    async def open(self) -> None:
        """
        Open the store and migrate it to the current schema.
        Safe to call repeatedly; only the first call does any work.

        Raises:
            StorageUnavailable: If SQLite cannot open or read the database
        """
        if self._engine is not None:
            return

        async with self._open_lock:
            if self._engine is not None:
                return

            engine = None
            try:
                engine = self._create_engine()
                try:
                    async with engine.begin() as conn:
                        previous = await conn.run_sync(run_migrations)
                except SchemaVersionConflict as exc:
                    logger.warning("%s - destroying and recreating local store", exc)
                    async with engine.begin() as conn:
                        await conn.run_sync(destroy_schema)
                        previous = await conn.run_sync(run_migrations)
            except (SQLAlchemyError, sqlite3.Error, OSError) as exc:
                if engine is not None:
                    await engine.dispose()
                logger.error("Local store could not be opened: %s", exc)
                raise StorageUnavailable(f"Local storage is unavailable: {exc}") from exc

            self._engine = engine
            self._session_factory = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info(
                "Local store opened at schema version %s (was %s)",
                SCHEMA_VERSION,
                previous,
            )

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def reset(self) -> None:
        """
        Delete the whole store and reopen it empty.
        Used when the database is irrecoverably broken; all offline data is lost.
        """
        await self.close()

        path = self.db_path
        if path is not None:
            for suffix in ("", "-wal", "-shm"):
                candidate = path.with_name(path.name + suffix)
                if candidate.exists():
                    candidate.unlink()
            logger.warning("Local store deleted: %s", path)

        await self.open()

    async def run(self, fn: Callable[[Session], T]) -> T:
        """
        Run fn(session) inside a single transaction.

        Commits when fn returns, rolls back when it raises. Exceptions raised
        by fn itself propagate unchanged; storage failures are raised as
        DatabaseError.
        """
        await self.open()

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    return await session.run_sync(fn)
        except SQLAlchemyError as exc:
            logger.error("Local store operation failed: %s", exc)
            raise DatabaseError(f"Local store operation failed: {exc}") from exc

    async def schema_version(self) -> int:
        await self.open()
        async with self._engine.connect() as conn:
            return await conn.run_sync(get_schema_version)

    async def check_connection(self) -> bool:
        """
        Verify the store is usable.
        Useful for health checks.
        """
        try:
            await self.open()
            async with self._engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                return result.scalar() == 1
        except (StorageUnavailable, SQLAlchemyError):
            return False
