"""Achievement evaluation, listing and reward claiming.

Achievements are granted automatically after every sparks change; their
sparks reward is credited only when the member claims it.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.enums import ConditionType
from workshop.db.models import (
    Achievement,
    InteractiveCompletion,
    MarathonProgress,
    QuizCompletion,
    User,
    UserAchievement,
    UserWork,
)
from workshop.exceptions import ConflictError, NotFoundError
from workshop.gamification.notifications import notify
from workshop.users.levels import LEVEL_THRESHOLDS
from workshop.utils import isoformat, utcnow

logger = logging.getLogger(__name__)


async def _count(db: AsyncSession, model: type, *criteria: Any) -> int:
    value = await db.scalar(select(func.count()).select_from(model).where(*criteria))
    return value or 0


async def _progress_value(db: AsyncSession, user: User, condition: ConditionType) -> float | str:
    """Current value of the metric an achievement condition compares against."""
    uid = user.user_id
    if condition is ConditionType.REGISTRATION:
        return 1 if user.is_registered else 0
    if condition is ConditionType.QUIZ_COMPLETION:
        return await _count(db, QuizCompletion, QuizCompletion.user_id == uid)
    if condition is ConditionType.PERFECT_QUIZ:
        return await _count(
            db, QuizCompletion, QuizCompletion.user_id == uid, QuizCompletion.perfect_score.is_(True)
        )
    if condition is ConditionType.WORK_UPLOAD:
        return await _count(db, UserWork, UserWork.user_id == uid)
    if condition is ConditionType.SPARKS_TOTAL:
        return user.sparks
    if condition is ConditionType.MARATHON_COMPLETION:
        return await _count(
            db, MarathonProgress, MarathonProgress.user_id == uid, MarathonProgress.completed.is_(True)
        )
    if condition is ConditionType.INTERACTIVE_COMPLETION:
        return await _count(db, InteractiveCompletion, InteractiveCompletion.user_id == uid)
    return user.level


def condition_met(condition: ConditionType, required: str, current: float | str) -> bool:
    """Compare a metric with an achievement's condition value."""
    if condition is ConditionType.LEVEL_REACHED:
        ranks = [entry["title"] for entry in LEVEL_THRESHOLDS]
        if required not in ranks or current not in ranks:
            return False
        return ranks.index(str(current)) >= ranks.index(required)
    if condition is ConditionType.REGISTRATION:
        return bool(current)
    try:
        return float(current) >= float(required)
    except ValueError:
        return False


async def check_achievements(db: AsyncSession, user_id: int) -> list[Achievement]:
    """Grant every active achievement whose condition the user now meets."""
    user = await db.get(User, user_id)
    if user is None:
        return []

    earned_ids = select(UserAchievement.achievement_id).where(UserAchievement.user_id == user_id)
    result = await db.execute(
        select(Achievement).where(Achievement.is_active.is_(True), Achievement.id.not_in(earned_ids))
    )
    candidates = list(result.scalars().all())
    if not candidates:
        return []

    metrics: dict[ConditionType, float | str] = {}
    granted: list[Achievement] = []
    for achievement in candidates:
        try:
            condition = ConditionType(achievement.condition_type)
        except ValueError:
            logger.warning("Unknown achievement condition %s", achievement.condition_type)
            continue
        if condition not in metrics:
            metrics[condition] = await _progress_value(db, user, condition)
        if not condition_met(condition, achievement.condition_value, metrics[condition]):
            continue

        db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id, earned_at=utcnow()))
        await notify(
            db,
            user_id,
            "achievement",
            "🏆 Новое достижение!",
            f'Вы получили достижение "{achievement.title}"!',
            action_url="/achievements",
        )
        granted.append(achievement)

    if granted:
        await db.flush()
        logger.info("Achievements granted: user=%s ids=%s", user_id, [a.id for a in granted])
    return granted


async def list_user_achievements(db: AsyncSession, user_id: int) -> dict[str, Any]:
    """Earned and available achievements with reward totals."""
    earned_result = await db.execute(
        select(UserAchievement, Achievement)
        .join(Achievement, Achievement.id == UserAchievement.achievement_id)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc())
    )
    earned = [(ua, achievement) for ua, achievement in earned_result.all()]
    earned_by_id = {ua.achievement_id: ua for ua, _ in earned}

    available_result = await db.execute(
        select(Achievement).where(Achievement.is_active.is_(True)).order_by(Achievement.id)
    )

    available = []
    for achievement in available_result.scalars().all():
        ua = earned_by_id.get(achievement.id)
        available.append({
            **achievement_to_dict(achievement),
            "earned": ua is not None,
            "earned_at": isoformat(ua.earned_at) if ua else None,
            "sparks_claimed": ua.sparks_claimed if ua else False,
        })

    return {
        "earned": [
            {
                **achievement_to_dict(achievement),
                "achievement_id": ua.achievement_id,
                "earned_at": isoformat(ua.earned_at),
                "sparks_claimed": ua.sparks_claimed,
            }
            for ua, achievement in earned
        ],
        "available": available,
        "total_earned": len(earned),
        "total_available": len(available),
        "total_sparks_earned": sum(a.sparks_reward for ua, a in earned if ua.sparks_claimed),
        "total_sparks_available": sum(a.sparks_reward for ua, a in earned if not ua.sparks_claimed),
    }


async def claim_achievement(db: AsyncSession, user_id: int, achievement_id: int) -> float:
    """Credit an earned achievement's reward once. Returns the sparks credited."""
    from workshop.users.sparks import adjust_sparks

    result = await db.execute(
        select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_id == achievement_id,
        )
    )
    ua = result.scalar_one_or_none()
    if ua is None:
        raise NotFoundError("Достижение не найдено")
    if ua.sparks_claimed:
        raise ConflictError("Награда уже получена")

    achievement = await db.get(Achievement, achievement_id)
    if achievement is None:
        raise NotFoundError("Достижение не найдено")

    ua.sparks_claimed = True
    reward = achievement.sparks_reward
    await adjust_sparks(
        db,
        user_id,
        reward,
        "achievement",
        f"Достижение: {achievement.title}",
        {"achievement_id": achievement_id},
    )
    return reward


def achievement_to_dict(achievement: Achievement) -> dict[str, Any]:
    return {
        "id": achievement.id,
        "title": achievement.title,
        "description": achievement.description,
        "icon": achievement.icon,
        "condition_type": achievement.condition_type,
        "condition_value": achievement.condition_value,
        "sparks_reward": achievement.sparks_reward,
        "is_active": achievement.is_active,
    }
