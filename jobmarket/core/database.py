"""
Database configuration with SQLAlchemy async support.
Uses SQLite for development, easily switchable to PostgreSQL for production.

The engine is owned by a `Database` instance created in the application
factory and stored on `app.state`; there is no module-level engine.
"""

from pathlib import Path
from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable SQLite security features."""
    cursor = dbapi_connection.cursor()
    # Enable foreign key constraints (session records cascade with their user)
    cursor.execute("PRAGMA foreign_keys=ON")
    # Enable secure delete (overwrite deleted data)
    cursor.execute("PRAGMA secure_delete=ON")
    cursor.close()


class Database:
    """Async engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False):
        self.url = make_url(url)
        self.engine = create_async_engine(url, echo=echo, future=True)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

        if self.url.get_backend_name() == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _set_sqlite_pragma)

    async def init(self) -> None:
        """Create the database tables."""
        # Make sure the models are registered on Base.metadata
        from jobmarket import models  # noqa: F401

        if self.url.get_backend_name() == "sqlite" and self.url.database:
            Path(self.url.database).parent.mkdir(parents=True, exist_ok=True)

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting database sessions."""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
