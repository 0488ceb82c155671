"""Shared test fixtures.

Every test gets its own in-memory SQLite database built from the ORM
metadata, and an app wired to it through ``create_app(database=...)``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.database import Database
from workshop.db.models import Activity, Admin, Character, Quiz, Role, User
from workshop.main import create_app
from workshop.seed import seed_catalog

ADMIN_ID = 1000


@pytest.fixture
def settings() -> Settings:
    """Test settings: in-memory store, no rate limiting, no startup seeding."""
    return Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite://",
        rate_limit_requests=0,
        seed_on_startup=False,
        log_format="console",
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    db = Database("sqlite+aiosqlite://")
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Direct session for service-level tests and assertions."""
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def client(settings: Settings, database: Database) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the ASGI app."""
    app = create_app(settings, database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def seeded(database: Database, settings: Settings) -> dict[str, Any]:
    """Default catalog plus an active admin. Returns ids tests commonly need."""
    async with database.session() as session:
        await seed_catalog(session, settings)
        session.add(Admin(user_id=ADMIN_ID, username="admin", role="superadmin"))
        session.add(User(user_id=ADMIN_ID, first_name="Admin", sparks=0))
        await session.commit()

        roles = {r.name: r.id for r in (await session.execute(select(Role))).scalars().all()}
        characters = {c.name: c.id for c in (await session.execute(select(Character))).scalars().all()}
        quizzes = {q.title: q.id for q in (await session.execute(select(Quiz))).scalars().all()}
    return {"admin_id": ADMIN_ID, "roles": roles, "characters": characters, "quizzes": quizzes}


@pytest.fixture
def make_user(database: Database) -> Callable[..., Awaitable[int]]:
    """Factory inserting a user row directly; returns the user id."""

    async def _make(user_id: int, sparks: float = 50, **fields: Any) -> int:
        async with database.session() as session:
            session.add(User(user_id=user_id, first_name=f"user{user_id}", sparks=sparks, **fields))
            await session.commit()
        return user_id

    return _make


@pytest.fixture
def count_activities(database: Database) -> Callable[[int], Awaitable[int]]:
    async def _count(user_id: int) -> int:
        async with database.session() as session:
            value = await session.scalar(
                select(func.count()).select_from(Activity).where(Activity.user_id == user_id)
            )
        return value or 0

    return _count


@pytest.fixture
def get_sparks(database: Database) -> Callable[[int], Awaitable[float]]:
    async def _get(user_id: int) -> float:
        async with database.session() as session:
            user = await session.get(User, user_id)
            assert user is not None
            return user.sparks

    return _get
