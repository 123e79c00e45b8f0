"""Database engine, session factory and lifecycle management.

The :class:`DatabaseClient` is constructed explicitly at application start-up
and stored on ``app.state``. Request handlers obtain sessions through the
:func:`get_async_session` dependency; background runs open their own sessions
from ``DatabaseClient.session_factory``.
"""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from policy_assistant.core.config import DatabaseSettings
from policy_assistant.core.exceptions import DatabaseError
from policy_assistant.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def build_engine(db_settings: DatabaseSettings) -> AsyncEngine:
    """Create the async engine for the configured database URL."""
    engine_kwargs: dict[str, Any] = {"echo": db_settings.echo, "future": True}
    if not db_settings.is_sqlite:
        engine_kwargs.update(
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.max_overflow,
            # Disable prepared statement cache for PgBouncer compatibility
            connect_args={"statement_cache_size": 0},
        )
    return create_async_engine(db_settings.connection_url, **engine_kwargs)


class DatabaseClient:
    """Relational database client with connection and schema management."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database client.

        Args:
            engine: SQLAlchemy async engine
        """
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )
        self._connected = False

    @classmethod
    def from_settings(cls, db_settings: DatabaseSettings) -> "DatabaseClient":
        return cls(build_engine(db_settings))

    async def connect(self) -> bool:
        """Test database connection.

        Raises:
            DatabaseError: If the database cannot be reached
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            self._connected = True
            LOGGER.info("Database connection successful")
            return True

        except Exception as e:
            self._connected = False
            LOGGER.error("Database connection failed", exc_info=True)
            raise DatabaseError(f"Database connection failed: {e}", original_error=e) from e

    async def disconnect(self) -> None:
        """Dispose of the engine and its pooled connections."""
        await self.engine.dispose()
        self._connected = False
        LOGGER.info("Database connection closed")

    async def create_tables(self) -> None:
        """Create all tables that don't exist yet."""
        # Registers the mapped classes on Base.metadata
        from policy_assistant.database import models  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            LOGGER.info("Database tables created/verified successfully")

        except Exception as e:
            LOGGER.error(
                "Failed to create database tables",
                exc_info=True,
                extra={"error": str(e)},
            )
            raise

    async def drop_tables(self) -> None:
        """Drop all database tables.

        WARNING: This will delete all data!
        """
        from policy_assistant.database import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        LOGGER.warning("All database tables dropped")

    async def auto_migrate(self, drop_existing: bool = False) -> None:
        """Auto-migrate database schema.

        Args:
            drop_existing: If True, drop existing tables before creating (WARNING: data loss!)
        """
        LOGGER.info("Starting auto-migration", extra={"drop_existing": drop_existing})

        if drop_existing:
            await self.drop_tables()

        await self.create_tables()

        LOGGER.info("Auto-migration completed successfully")

    async def health_check(self) -> dict:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))

            self._connected = True

            return {
                "status": "healthy",
                "connected": True,
                "database": self.engine.dialect.name,
                "latency_test": "passed" if val == 1 else "failed",
            }

        except Exception as e:
            self._connected = False
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {
                "status": "unhealthy",
                "connected": False,
                "error": str(e),
            }

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected


async def init_database(
    client: DatabaseClient, auto_migrate: bool = True, drop_existing: bool = False
) -> None:
    """Initialize database connection and optionally run migrations.

    Args:
        client: Database client created for this process
        auto_migrate: Whether to run auto-migration on startup
        drop_existing: Whether to drop existing tables (WARNING: data loss!)
    """
    LOGGER.info("Initializing database connection...")

    await client.connect()

    if auto_migrate:
        await client.auto_migrate(drop_existing=drop_existing)

    LOGGER.info("Database initialization completed")


async def close_database(client: DatabaseClient) -> None:
    """Close database connection."""
    try:
        LOGGER.info("Closing database connection...")
        await client.disconnect()
    except Exception as e:
        LOGGER.error(
            "Error closing database",
            exc_info=True,
            extra={"error": str(e)},
        )


def get_database_client(request: Request) -> DatabaseClient:
    """FastAPI dependency returning the process-wide database client."""
    return request.app.state.db


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for getting async database session.

    Yields:
        AsyncSession: Database session
    """
    client = get_database_client(request)
    async with client.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
