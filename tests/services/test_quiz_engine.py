"""Quiz submission rules: cooldown, retake, attempt limits."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from workshop.db.models import Quiz, QuizCompletion, User
from workshop.exceptions import CooldownError, NotFoundError, ValidationError
from workshop.quizzes.engine import QuizEngine
from workshop.utils import utcnow

QUESTIONS = [
    {"question": "A?", "options": ["x", "y"], "correct_answer": 0},
    {"question": "B?", "options": ["x", "y"], "correct_answer": 1},
]


async def _setup(db, **quiz_fields):
    db.add(User(user_id=1, first_name="Тест", sparks=0))
    quiz = Quiz(
        title="Тест",
        questions=QUESTIONS,
        sparks_per_correct=2,
        sparks_perfect_bonus=10,
        **quiz_fields,
    )
    db.add(quiz)
    await db.commit()
    return quiz.id


async def _age_completion(db, quiz_id, hours):
    completion = (await db.execute(select(QuizCompletion).where(QuizCompletion.quiz_id == quiz_id))).scalar_one()
    completion.completed_at = utcnow() - timedelta(hours=hours)
    await db.commit()


@pytest.mark.asyncio
class TestQuizSubmission:
    async def test_perfect_attempt(self, db_session, settings):
        quiz_id = await _setup(db_session)
        result = await QuizEngine(db_session, settings).submit(quiz_id, 1, [0, 1])
        assert result["perfect_score"] is True
        assert result["sparks_earned"] == 14
        assert result["score_percentage"] == 100

    async def test_cooldown_blocks_retake(self, db_session, settings):
        quiz_id = await _setup(db_session, cooldown_hours=24)
        engine = QuizEngine(db_session, settings)
        await engine.submit(quiz_id, 1, [0, 0])
        await db_session.commit()
        with pytest.raises(CooldownError, match="24 ч"):
            await engine.submit(quiz_id, 1, [0, 1])

    async def test_retake_after_cooldown_updates_completion(self, db_session, settings):
        quiz_id = await _setup(db_session, cooldown_hours=24)
        engine = QuizEngine(db_session, settings)
        await engine.submit(quiz_id, 1, [0, 0])
        await db_session.commit()
        await _age_completion(db_session, quiz_id, 25)

        result = await engine.submit(quiz_id, 1, [0, 1])
        await db_session.commit()

        assert result["perfect_score"] is True
        rows = await db_session.scalar(
            select(func.count()).select_from(QuizCompletion).where(QuizCompletion.quiz_id == quiz_id)
        )
        assert rows == 1
        user = await db_session.get(User, 1, populate_existing=True)
        assert user.sparks == 2 + 14

    async def test_single_attempt_quiz(self, db_session, settings):
        quiz_id = await _setup(db_session, allow_retake=False)
        engine = QuizEngine(db_session, settings)
        await engine.submit(quiz_id, 1, [0, 1])
        await db_session.commit()
        await _age_completion(db_session, quiz_id, 1000)
        with pytest.raises(CooldownError, match="только один раз"):
            await engine.submit(quiz_id, 1, [0, 1])

    async def test_inactive_quiz(self, db_session, settings):
        quiz_id = await _setup(db_session, is_active=False)
        with pytest.raises(NotFoundError):
            await QuizEngine(db_session, settings).submit(quiz_id, 1, [0, 1])

    async def test_unknown_user(self, db_session, settings):
        quiz_id = await _setup(db_session)
        with pytest.raises(NotFoundError):
            await QuizEngine(db_session, settings).submit(quiz_id, 2, [0, 1])

    async def test_answers_must_be_a_list(self, db_session, settings):
        quiz_id = await _setup(db_session)
        with pytest.raises(ValidationError):
            await QuizEngine(db_session, settings).submit(quiz_id, 1, "0,1")

    async def test_stats(self, db_session, settings):
        quiz_id = await _setup(db_session)
        engine = QuizEngine(db_session, settings)
        await engine.submit(quiz_id, 1, [0, 0])
        stats = await engine.stats(quiz_id)
        assert stats["completions"] == 1
        assert stats["perfect_completions"] == 0
        assert stats["average_score"] == 50
