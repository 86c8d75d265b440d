"""Async SQLAlchemy engine and session lifecycle."""
import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tenantdesk.core.config import Settings
from tenantdesk.models import Base

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # noqa: ANN001, ARG001
    """SQLite ignores FOREIGN KEY clauses unless enabled per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Created by the app lifespan, stored on app.state.db, and closed on shutdown
    after in-flight requests have drained.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Engine, only available after connect()."""
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Session factory, only available after connect()."""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected")
        return self._session_factory

    def _engine_options(self) -> dict:
        url = self._settings.database_url
        if self._settings.is_sqlite:
            options: dict = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url:
                # One shared connection, otherwise each checkout sees an empty database
                options["poolclass"] = StaticPool
            return options
        return {
            "pool_pre_ping": True,
            "pool_size": self._settings.db_pool_size,
            "max_overflow": self._settings.db_max_overflow,
        }

    async def connect(self) -> None:
        """Create the engine and, when configured, the schema."""
        self._engine = create_async_engine(
            self._settings.database_url,
            echo=False,
            **self._engine_options(),
        )
        if self._settings.is_sqlite:
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if self._settings.create_tables_on_startup:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database engine created")

    async def close(self) -> None:
        """Dispose of the engine and every pooled connection."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None

    async def ping(self) -> bool:
        """Round-trip a trivial query."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed: %s", e)
            return False


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Services commit their own writes (so cache invalidation follows committed
    state); anything left pending is committed here at request end, and an error
    rolls back whatever has not been committed yet.
    """
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
