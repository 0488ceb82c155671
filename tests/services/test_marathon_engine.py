"""Marathon day sequencing and completion bonus."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from workshop.db.models import Activity, Marathon, Notification, User
from workshop.exceptions import NotFoundError, SequenceError, ValidationError
from workshop.marathons.engine import MarathonEngine

TASKS = [
    {"day": 1, "title": "Старт"},
    {"day": 2, "title": "Середина", "requires_submission": True},
    {"day": 3, "title": "Финал", "sparks_reward": 20},
]


async def _setup(db):
    db.add(User(user_id=1, first_name="Тест", sparks=0))
    marathon = Marathon(
        title="Марафон",
        duration_days=3,
        tasks=TASKS,
        sparks_per_day=7,
        sparks_completion_bonus=50,
    )
    db.add(marathon)
    await db.commit()
    return marathon.id


async def _sparks(db):
    user = await db.get(User, 1, populate_existing=True)
    return user.sparks


@pytest.mark.asyncio
class TestMarathonEngine:
    async def test_start_creates_progress_once(self, db_session):
        marathon_id = await _setup(db_session)
        engine = MarathonEngine(db_session)
        first = await engine.start_or_resume(marathon_id, 1)
        second = await engine.start_or_resume(marathon_id, 1)
        assert first["current_day"] == second["current_day"] == 1
        assert first["can_start"] is False
        assert len(first["tasks"]) == 3

    async def test_out_of_order_day(self, db_session):
        marathon_id = await _setup(db_session)
        with pytest.raises(SequenceError):
            await MarathonEngine(db_session).submit_day(marathon_id, 1, 2, "ответ")

    async def test_unknown_day(self, db_session):
        marathon_id = await _setup(db_session)
        with pytest.raises(NotFoundError):
            await MarathonEngine(db_session).submit_day(marathon_id, 1, 9)

    async def test_submission_text_required(self, db_session):
        marathon_id = await _setup(db_session)
        engine = MarathonEngine(db_session)
        await engine.submit_day(marathon_id, 1, 1)
        with pytest.raises(ValidationError):
            await engine.submit_day(marathon_id, 1, 2, "   ")

    async def test_past_day_is_a_noop(self, db_session):
        marathon_id = await _setup(db_session)
        engine = MarathonEngine(db_session)
        await engine.submit_day(marathon_id, 1, 1)
        result = await engine.submit_day(marathon_id, 1, 1)
        assert result["already_submitted"] is True
        assert result["sparks_earned"] == 0
        assert result["current_day"] == 2
        assert await _sparks(db_session) == 7

    async def test_completion_bonus_paid_once(self, db_session):
        marathon_id = await _setup(db_session)
        engine = MarathonEngine(db_session)
        await engine.submit_day(marathon_id, 1, 1)
        await engine.submit_day(marathon_id, 1, 2, "готово")
        final = await engine.submit_day(marathon_id, 1, 3)

        assert final["completed"] is True
        assert final["sparks_earned"] == 20
        assert final["completion_bonus"] == 50
        assert final["total_sparks_earned"] == 7 + 7 + 20 + 50
        assert await _sparks(db_session) == 84

        again = await engine.submit_day(marathon_id, 1, 3)
        assert again["already_submitted"] is True
        assert await _sparks(db_session) == 84

        bonus_rows = await db_session.scalar(
            select(func.count()).select_from(Activity).where(Activity.activity_type == "marathon_completion")
        )
        assert bonus_rows == 1
        notifications = await db_session.scalar(
            select(func.count()).select_from(Notification).where(Notification.type == "marathon")
        )
        assert notifications == 1

    async def test_participants(self, db_session):
        marathon_id = await _setup(db_session)
        engine = MarathonEngine(db_session)
        await engine.submit_day(marathon_id, 1, 1)
        report = await engine.participants(marathon_id)
        assert report["total"] == 1
        assert report["participants"][0]["current_day"] == 2
