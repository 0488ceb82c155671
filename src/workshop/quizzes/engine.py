"""Quiz engine: listing with per-user state, submission, results, admin stats."""

from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.catalog.service import quiz_to_dict
from workshop.config import Settings
from workshop.db.models import Character, Quiz, QuizCompletion, User
from workshop.exceptions import CooldownError, NotFoundError, ValidationError
from workshop.policy import policy_value
from workshop.quizzes.scoring import (
    apply_character_bonus,
    compute_reward,
    result_message,
    score_answers,
    score_percentage,
)
from workshop.users.sparks import adjust_sparks
from workshop.utils import ensure_utc, hours_since, isoformat, start_of_day, utcnow

logger = logging.getLogger(__name__)


class QuizEngine:
    """Scores quiz attempts and enforces retake rules."""

    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def _active_quiz(self, quiz_id: int) -> Quiz:
        quiz = await self.db.get(Quiz, quiz_id)
        if quiz is None or not quiz.is_active:
            raise NotFoundError("Квиз не найден")
        return quiz

    async def _completion(self, user_id: int, quiz_id: int) -> QuizCompletion | None:
        result = await self.db.execute(
            select(QuizCompletion).where(QuizCompletion.user_id == user_id, QuizCompletion.quiz_id == quiz_id)
        )
        return result.scalar_one_or_none()

    async def _max_attempts(self, quiz: Quiz) -> int:
        if quiz.max_attempts_per_day:
            return quiz.max_attempts_per_day
        return int(await policy_value(self.db, self.settings, "quiz_attempts_per_day"))

    @staticmethod
    def _attempts_today(completion: QuizCompletion | None) -> int:
        if completion is None:
            return 0
        if ensure_utc(completion.completed_at) < start_of_day():  # type: ignore[operator]
            return 0
        return completion.attempts_today

    def _retake_block(self, quiz: Quiz, completion: QuizCompletion | None, max_attempts: int) -> str | None:
        """Reason a new attempt is refused, or None when allowed."""
        if completion is None:
            return None
        if not quiz.allow_retake:
            return "Этот квиз можно пройти только один раз"
        elapsed = hours_since(completion.completed_at)
        if elapsed < quiz.cooldown_hours:
            wait = math.ceil(quiz.cooldown_hours - elapsed)
            return f"Повторное прохождение будет доступно через {wait} ч."
        if self._attempts_today(completion) >= max_attempts:
            return "Лимит попыток на сегодня исчерпан"
        return None

    async def list_quizzes(self, user_id: int | None = None) -> list[dict[str, Any]]:
        result = await self.db.execute(select(Quiz).where(Quiz.is_active.is_(True)).order_by(Quiz.id))
        quizzes = []
        for quiz in result.scalars().all():
            completion = await self._completion(user_id, quiz.id) if user_id else None
            max_attempts = await self._max_attempts(quiz)
            attempts_today = self._attempts_today(completion)
            quizzes.append({
                "id": quiz.id,
                "title": quiz.title,
                "description": quiz.description,
                "difficulty": quiz.difficulty,
                "sparks_per_correct": quiz.sparks_per_correct,
                "sparks_perfect_bonus": quiz.sparks_perfect_bonus,
                "cooldown_hours": quiz.cooldown_hours,
                "allow_retake": quiz.allow_retake,
                "questions_count": len(quiz.questions),
                "completed": completion is not None,
                "user_score": completion.score if completion else 0,
                "total_questions": completion.total_questions if completion else len(quiz.questions),
                "perfect_score": completion.perfect_score if completion else False,
                "last_completion": isoformat(completion.completed_at) if completion else None,
                "attempts_today": attempts_today,
                "attempts_left": max(max_attempts - attempts_today, 0),
                "can_retake": self._retake_block(quiz, completion, max_attempts) is None,
            })
        return quizzes

    async def get_quiz(self, quiz_id: int) -> dict[str, Any]:
        """Active quiz for taking; answers and explanations are withheld."""
        quiz = await self._active_quiz(quiz_id)
        return quiz_to_dict(quiz, include_answers=False)

    async def submit(self, quiz_id: int, user_id: int, answers: list[Any]) -> dict[str, Any]:
        """Score an attempt, upsert the completion and credit the reward."""
        if not isinstance(answers, list):
            raise ValidationError("Ответы должны быть списком")
        quiz = await self._active_quiz(quiz_id)
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Пользователь не найден")

        completion = await self._completion(user_id, quiz_id)
        max_attempts = await self._max_attempts(quiz)
        reason = self._retake_block(quiz, completion, max_attempts)
        if reason is not None:
            raise CooldownError(reason)

        total = len(quiz.questions)
        correct, results = score_answers(quiz.questions, answers)
        perfect = total > 0 and correct == total
        reward = compute_reward(correct, total, quiz.sparks_per_correct, quiz.sparks_perfect_bonus)
        character = await self.db.get(Character, user.character_id) if user.character_id else None
        if character is not None:
            reward = apply_character_bonus(reward, character.bonus_type, character.bonus_value)

        now = utcnow()
        attempts_today = self._attempts_today(completion) + 1
        if completion is None:
            completion = QuizCompletion(user_id=user_id, quiz_id=quiz_id)
            self.db.add(completion)
        completion.score = correct
        completion.total_questions = total
        completion.sparks_earned = reward
        completion.perfect_score = perfect
        completion.answers = list(answers)
        completion.results = results
        completion.attempts_today = attempts_today
        completion.completed_at = now
        await self.db.flush()

        await adjust_sparks(
            self.db,
            user_id,
            reward,
            "quiz",
            f"Квиз: {quiz.title}",
            {"quiz_id": quiz_id, "score": correct, "total": total, "perfect": perfect},
        )
        logger.info("Quiz submitted: user=%s quiz=%s score=%s/%s reward=%s", user_id, quiz_id, correct, total, reward)

        return {
            "correct_answers": correct,
            "total_questions": total,
            "sparks_earned": reward,
            "perfect_score": perfect,
            "score_percentage": score_percentage(correct, total),
            "results": results,
            "attempts_left": max(max_attempts - attempts_today, 0),
            "message": result_message(correct, total, quiz.sparks_per_correct, quiz.sparks_perfect_bonus, reward),
        }

    async def get_results(self, quiz_id: int, user_id: int) -> dict[str, Any]:
        completion = await self._completion(user_id, quiz_id)
        if completion is None:
            raise NotFoundError("Результаты не найдены")
        return {
            "quiz_id": quiz_id,
            "score": completion.score,
            "total_questions": completion.total_questions,
            "score_percentage": score_percentage(completion.score, completion.total_questions),
            "perfect_score": completion.perfect_score,
            "sparks_earned": completion.sparks_earned,
            "results": list(completion.results),
            "completed_at": isoformat(completion.completed_at),
        }

    async def stats(self, quiz_id: int) -> dict[str, Any]:
        """Completion totals and per-question correct counts for the admin panel."""
        quiz = await self.db.get(Quiz, quiz_id)
        if quiz is None:
            raise NotFoundError("Квиз не найден")
        result = await self.db.execute(select(QuizCompletion).where(QuizCompletion.quiz_id == quiz_id))
        completions = list(result.scalars().all())

        total = len(completions)
        perfect = sum(1 for c in completions if c.perfect_score)
        percentages = [score_percentage(c.score, c.total_questions) for c in completions]
        per_question = []
        for index, question in enumerate(quiz.questions):
            right = sum(
                1
                for c in completions
                if index < len(c.results) and c.results[index].get("is_correct")
            )
            per_question.append({
                "index": index,
                "question": question.get("question", ""),
                "correct_count": right,
                "correct_rate": round(right / total * 100) if total else 0,
            })

        return {
            "quiz_id": quiz_id,
            "title": quiz.title,
            "completions": total,
            "perfect_completions": perfect,
            "average_score": round(sum(percentages) / total, 1) if total else 0,
            "success_rate": round(perfect / total * 100) if total else 0,
            "questions": per_question,
        }
