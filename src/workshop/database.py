"""Async SQLAlchemy engine and session management.

A ``Database`` is constructed explicitly and handed to the application
(``app.state.database``) or to a test, so every caller gets its own isolated
handle instead of a module-level singleton.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from workshop.db.base import Base
from workshop.exceptions import PersistenceError

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str, echo: bool) -> dict[str, Any]:
    """Pool settings per dialect; in-memory SQLite must share one connection."""
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        if parsed.database in (None, "", ":memory:"):
            return {
                "echo": echo,
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        return {"echo": echo}
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_pre_ping": True,
        "echo": echo,
        "connect_args": {"statement_cache_size": 0},
    }


class Database:
    """Owns the engine and session factory for one relational store."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **_engine_kwargs(url, echo))
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """One unit of work. Store failures surface as PersistenceError."""
        async with self.session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error("Database operation failed", exc_info=True)
                raise PersistenceError("Хранилище данных недоступно") from exc

    async def check_connection(self) -> None:
        """Run a trivial query; raises PersistenceError if the store is unreachable."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError("Хранилище данных недоступно") from exc

    async def create_all(self) -> None:
        """Create all tables from ORM metadata (local runs and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Dispose of the engine."""
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session (FastAPI dependency)."""
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None:
        msg = "Database not initialized."
        raise RuntimeError(msg)
    async with database.session() as session:
        yield session
