"""Purchases racing for the same balance."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from workshop.database import Database
from workshop.db.models import Activity, Purchase, ShopItem, User
from workshop.exceptions import InsufficientSparksError
from workshop.shop.service import ShopService


@pytest_asyncio.fixture
async def file_database(tmp_path):
    """A file-backed store: unlike in-memory SQLite, each session gets its own connection."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    await db.create_all()
    yield db
    await db.dispose()


@pytest.mark.asyncio
class TestConcurrentPurchases:
    async def _setup(self, database, sparks=50.0, price=20.0):
        async with database.session() as session:
            session.add(User(user_id=1, first_name="Тест", sparks=sparks))
            item = ShopItem(title="Гайд", price=price)
            session.add(item)
            await session.commit()
            return item.id

    async def _buy(self, database, item_id):
        async with database.session() as session:
            try:
                await ShopService(session).purchase(1, item_id)
            except InsufficientSparksError:
                return False
            await session.commit()
            return True

    async def test_parallel_purchases_never_overdraw(self, file_database):
        item_id = await self._setup(file_database, sparks=50, price=20)

        results = await asyncio.gather(*(self._buy(file_database, item_id) for _ in range(5)))

        assert results.count(True) == 2
        async with file_database.session() as session:
            user = await session.get(User, 1)
            purchases = await session.scalar(select(func.count()).select_from(Purchase))
            debits = await session.scalar(
                select(func.sum(Activity.sparks_earned)).where(Activity.activity_type == "purchase")
            )
        assert user.sparks == 10
        assert purchases == 2
        assert debits == -40

    async def test_two_sessions_cannot_both_spend_the_balance(self, file_database):
        item_id = await self._setup(file_database, sparks=30, price=20)

        first, second = await asyncio.gather(
            self._buy(file_database, item_id),
            self._buy(file_database, item_id),
        )

        assert sorted([first, second]) == [False, True]
        async with file_database.session() as session:
            assert (await session.get(User, 1)).sparks == 10
