"""Single-question interactives."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.catalog.service import interactive_to_dict
from workshop.db.models import Interactive, InteractiveCompletion, User
from workshop.exceptions import ConflictError, NotFoundError
from workshop.users.sparks import adjust_sparks
from workshop.utils import isoformat, utcnow

logger = logging.getLogger(__name__)


class InteractiveEngine:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _completion(self, user_id: int, interactive_id: int) -> InteractiveCompletion | None:
        result = await self.db.execute(
            select(InteractiveCompletion).where(
                InteractiveCompletion.user_id == user_id,
                InteractiveCompletion.interactive_id == interactive_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_interactives(self, user_id: int | None = None) -> list[dict[str, Any]]:
        result = await self.db.execute(
            select(Interactive).where(Interactive.is_active.is_(True)).order_by(Interactive.id)
        )
        items = []
        for interactive in result.scalars().all():
            completion = await self._completion(user_id, interactive.id) if user_id else None
            items.append({
                **interactive_to_dict(interactive, include_answer=False),
                "completed": completion is not None,
                "user_correct": completion.correct if completion else False,
                "completed_at": isoformat(completion.completed_at) if completion else None,
                "can_retake": completion is None or interactive.allow_retake,
            })
        return items

    async def submit(self, interactive_id: int, user_id: int, answer: int) -> dict[str, Any]:
        """Check an answer and credit the reward when it is right.

        A completed interactive without ``allow_retake`` is refused with
        ConflictError; retakes update the completion row in place.
        """
        interactive = await self.db.get(Interactive, interactive_id)
        if interactive is None or not interactive.is_active:
            raise NotFoundError("Интерактив не найден")
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("Пользователь не найден")

        completion = await self._completion(user_id, interactive_id)
        if completion is not None and not interactive.allow_retake:
            raise ConflictError("Интерактив уже пройден")

        correct = answer == interactive.correct_answer
        reward = interactive.sparks_reward if correct else 0
        if completion is None:
            completion = InteractiveCompletion(user_id=user_id, interactive_id=interactive_id)
            self.db.add(completion)
        completion.answer = answer
        completion.correct = correct
        completion.score = 1 if correct else 0
        completion.sparks_earned = reward
        completion.completed_at = utcnow()
        await self.db.flush()

        await adjust_sparks(
            self.db,
            user_id,
            reward,
            "interactive",
            f"Интерактив: {interactive.title}",
            {"interactive_id": interactive_id, "correct": correct},
        )
        logger.info("Interactive submitted: user=%s id=%s correct=%s", user_id, interactive_id, correct)

        return {
            "correct": correct,
            "correct_answer": interactive.correct_answer,
            "explanation": interactive.explanation,
            "sparks_earned": reward,
            "message": f"Правильно! +{reward:g}✨" if correct else "Попробуйте еще раз!",
        }
