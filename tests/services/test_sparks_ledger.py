"""The sparks ledger: balance changes always come with one activity row."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from workshop.db.models import Activity, User
from workshop.exceptions import InsufficientSparksError, NotFoundError
from workshop.users.sparks import adjust_sparks, list_activities


async def _user(db, user_id=1, sparks=50.0):
    db.add(User(user_id=user_id, first_name="Тест", sparks=sparks))
    await db.commit()


async def _activities(db, user_id=1):
    return await db.scalar(select(func.count()).select_from(Activity).where(Activity.user_id == user_id))


@pytest.mark.asyncio
class TestAdjustSparks:
    async def test_credit_updates_balance_level_and_ledger(self, db_session):
        await _user(db_session, sparks=140)
        activity = await adjust_sparks(db_session, 1, 10, "quiz", "Квиз")
        user = await db_session.get(User, 1)
        assert user.sparks == 150
        assert user.level == "Знаток"
        assert activity.sparks_earned == 10
        assert await _activities(db_session) == 1

    async def test_zero_reward_still_logged(self, db_session):
        await _user(db_session)
        await adjust_sparks(db_session, 1, 0, "interactive", "Неверный ответ")
        assert await _activities(db_session) == 1

    async def test_debit_requiring_funds(self, db_session):
        await _user(db_session, sparks=20)
        await adjust_sparks(db_session, 1, -15, "purchase", "Покупка", require_funds=True)
        user = await db_session.get(User, 1)
        assert user.sparks == 5

    async def test_insufficient_funds_changes_nothing(self, db_session):
        await _user(db_session, sparks=10)
        with pytest.raises(InsufficientSparksError):
            await adjust_sparks(db_session, 1, -15, "purchase", "Покупка", require_funds=True)
        await db_session.rollback()
        user = await db_session.get(User, 1)
        assert user.sparks == 10
        assert await _activities(db_session) == 0

    async def test_plain_debit_clamps_at_zero(self, db_session):
        await _user(db_session, sparks=10)
        await adjust_sparks(db_session, 1, -25, "penalty", "Штраф")
        user = await db_session.get(User, 1, populate_existing=True)
        assert user.sparks == 0

    async def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await adjust_sparks(db_session, 404, 5, "quiz", "Квиз")

    async def test_user_gone_after_update(self, db_session, monkeypatch):
        await _user(db_session)

        async def _missing(*args, **kwargs):
            return None

        monkeypatch.setattr(db_session, "get", _missing)
        with pytest.raises(NotFoundError):
            await adjust_sparks(db_session, 1, 5, "quiz", "Квиз")
        assert await _activities(db_session) == 0

    async def test_activities_newest_first(self, db_session):
        await _user(db_session)
        for n in range(3):
            await adjust_sparks(db_session, 1, n, "quiz", f"Квиз {n}")
        activities, total = await list_activities(db_session, 1, limit=2)
        assert total == 3
        assert [a.description for a in activities] == ["Квиз 2", "Квиз 1"]
