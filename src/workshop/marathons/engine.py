"""Marathon engine: day-by-day progress through a multi-day challenge.

Each user has one progress row per marathon whose ``current_day`` points at
the next day to submit. Days strictly before the pointer are done; a repeated
submission for such a day changes nothing.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.catalog.service import marathon_to_dict
from workshop.db.models import Marathon, MarathonProgress, MarathonSubmission, User
from workshop.exceptions import NotFoundError, SequenceError, ValidationError
from workshop.gamification.notifications import notify
from workshop.users.sparks import adjust_sparks
from workshop.utils import isoformat, utcnow

logger = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    return f"{value:g}"


def find_task(marathon: Marathon, day: int) -> dict[str, Any] | None:
    for task in marathon.tasks:
        if task.get("day") == day:
            return task
    return None


def progress_percent(marathon: Marathon, progress: MarathonProgress | None) -> int:
    if progress is None:
        return 0
    if progress.completed:
        return 100
    return round((progress.current_day - 1) / max(marathon.duration_days, 1) * 100)


class MarathonEngine:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _active_marathon(self, marathon_id: int) -> Marathon:
        marathon = await self.db.get(Marathon, marathon_id)
        if marathon is None or not marathon.is_active:
            raise NotFoundError("Марафон не найден")
        return marathon

    async def _progress(self, user_id: int, marathon_id: int) -> MarathonProgress | None:
        result = await self.db.execute(
            select(MarathonProgress).where(
                MarathonProgress.user_id == user_id,
                MarathonProgress.marathon_id == marathon_id,
            )
        )
        return result.scalar_one_or_none()

    def _describe(self, marathon: Marathon, progress: MarathonProgress | None) -> dict[str, Any]:
        current_day = progress.current_day if progress else 1
        completed = bool(progress and progress.completed)
        days_completed = marathon.duration_days if completed else current_day - 1
        return {
            "id": marathon.id,
            "title": marathon.title,
            "description": marathon.description,
            "duration_days": marathon.duration_days,
            "difficulty": marathon.difficulty,
            "sparks_per_day": marathon.sparks_per_day,
            "sparks_completion_bonus": marathon.sparks_completion_bonus,
            "current_day": current_day,
            "progress": progress_percent(marathon, progress),
            "completed": completed,
            "can_continue": bool(progress) and not completed and current_day > 1,
            "days_completed": days_completed,
            "days_remaining": marathon.duration_days - days_completed,
            "can_start": progress is None,
            "current_task": None if completed else find_task(marathon, current_day),
        }

    async def list_marathons(self, user_id: int | None = None) -> list[dict[str, Any]]:
        result = await self.db.execute(select(Marathon).where(Marathon.is_active.is_(True)).order_by(Marathon.id))
        marathons = []
        for marathon in result.scalars().all():
            progress = await self._progress(user_id, marathon.id) if user_id else None
            marathons.append(self._describe(marathon, progress))
        return marathons

    async def start_or_resume(self, marathon_id: int, user_id: int) -> dict[str, Any]:
        """Marathon detail with the user's progress, starting it at day 1 if new."""
        marathon = await self._active_marathon(marathon_id)
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("Пользователь не найден")

        progress = await self._progress(user_id, marathon_id)
        if progress is None:
            now = utcnow()
            progress = MarathonProgress(
                user_id=user_id,
                marathon_id=marathon_id,
                current_day=1,
                progress=0,
                started_at=now,
                last_activity=now,
            )
            self.db.add(progress)
            await self.db.flush()
            logger.info("Marathon started: user=%s marathon=%s", user_id, marathon_id)

        return {
            **self._describe(marathon, progress),
            "tasks": list(marathon.tasks),
            "total_sparks_earned": progress.total_sparks_earned,
            "started_at": isoformat(progress.started_at),
        }

    async def submit_day(
        self,
        marathon_id: int,
        user_id: int,
        day: int,
        submission_text: str | None = None,
    ) -> dict[str, Any]:
        """Submit the current day's task and advance the pointer."""
        marathon = await self._active_marathon(marathon_id)
        task = find_task(marathon, day)
        if task is None:
            raise NotFoundError("Задание не найдено")
        if task.get("requires_submission") and not (submission_text or "").strip():
            raise ValidationError("Для этого задания нужно отправить ответ")
        if await self.db.get(User, user_id) is None:
            raise NotFoundError("Пользователь не найден")

        now = utcnow()
        progress = await self._progress(user_id, marathon_id)
        if progress is None:
            progress = MarathonProgress(user_id=user_id, marathon_id=marathon_id, current_day=1, started_at=now)
            self.db.add(progress)
            await self.db.flush()

        if day < progress.current_day or progress.completed:
            return {
                "success": True,
                "sparks_earned": 0,
                "current_day": progress.current_day,
                "progress": progress_percent(marathon, progress),
                "completed": progress.completed,
                "completion_bonus": 0,
                "total_sparks_earned": progress.total_sparks_earned,
                "already_submitted": True,
                "message": f"День {day} уже выполнен",
            }
        if day != progress.current_day:
            raise SequenceError("Неверный день марафона")

        day_reward = task.get("sparks_reward") or marathon.sparks_per_day
        self.db.add(
            MarathonSubmission(
                user_id=user_id,
                marathon_id=marathon_id,
                day=day,
                submission_text=submission_text,
                submitted_at=now,
            )
        )

        completed = day >= marathon.duration_days
        bonus = marathon.sparks_completion_bonus if completed else 0
        progress.current_day = day + 1
        progress.last_activity = now
        progress.total_sparks_earned += day_reward + bonus
        if completed:
            progress.completed = True
            progress.progress = 100
            progress.completed_at = now
        else:
            progress.progress = round(day / max(marathon.duration_days, 1) * 100)
        await self.db.flush()

        await adjust_sparks(
            self.db,
            user_id,
            day_reward,
            "marathon",
            f"Марафон «{marathon.title}»: день {day}",
            {"marathon_id": marathon_id, "day": day},
        )
        if completed:
            if bonus:
                await adjust_sparks(
                    self.db,
                    user_id,
                    bonus,
                    "marathon_completion",
                    f"Марафон «{marathon.title}» завершен",
                    {"marathon_id": marathon_id},
                )
            await notify(
                self.db,
                user_id,
                "marathon",
                "🏁 Марафон завершен!",
                f"Вы прошли марафон «{marathon.title}» и получили +{_fmt(day_reward + bonus)}✨",
                action_url="/marathons",
            )
            message = f"🎉 Марафон завершен! +{_fmt(day_reward)}✨ (день) + {_fmt(bonus)}✨ (бонус)"
        else:
            message = f"День {day} завершен! +{_fmt(day_reward)}✨"
        logger.info("Marathon day submitted: user=%s marathon=%s day=%s", user_id, marathon_id, day)

        return {
            "success": True,
            "sparks_earned": day_reward,
            "current_day": progress.current_day,
            "progress": progress.progress,
            "completed": progress.completed,
            "completion_bonus": bonus,
            "total_sparks_earned": progress.total_sparks_earned,
            "already_submitted": False,
            "message": message,
        }

    async def participants(self, marathon_id: int) -> dict[str, Any]:
        """Admin view: every progress row with user info."""
        marathon = await self.db.get(Marathon, marathon_id)
        if marathon is None:
            raise NotFoundError("Марафон не найден")
        result = await self.db.execute(
            select(MarathonProgress, User)
            .join(User, User.user_id == MarathonProgress.user_id)
            .where(MarathonProgress.marathon_id == marathon_id)
            .order_by(MarathonProgress.started_at)
        )
        rows = result.all()
        participants = [
            {
                "user_id": user.user_id,
                "first_name": user.first_name,
                "username": user.username,
                "current_day": progress.current_day,
                "progress": progress.progress,
                "completed": progress.completed,
                "total_sparks_earned": progress.total_sparks_earned,
                "started_at": isoformat(progress.started_at),
                "last_activity": isoformat(progress.last_activity),
                "completed_at": isoformat(progress.completed_at),
            }
            for progress, user in rows
        ]
        return {
            "marathon": marathon_to_dict(marathon),
            "participants": participants,
            "total": len(participants),
            "completed": sum(1 for p in participants if p["completed"]),
        }
