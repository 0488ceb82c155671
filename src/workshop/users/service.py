"""User service: first contact, registration, role changes, profile stats."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.db.models import (
    Activity,
    Character,
    InteractiveCompletion,
    MarathonProgress,
    Purchase,
    QuizCompletion,
    Role,
    User,
    UserAchievement,
    UserWork,
)
from workshop.exceptions import NotFoundError, ValidationError
from workshop.gamification.achievements import check_achievements
from workshop.gamification.notifications import notify, unread_count
from workshop.policy import policy_value
from workshop.users.levels import compute_level, level_title
from workshop.users.sparks import record_activity
from workshop.utils import ensure_utc, isoformat, start_of_day, utcnow

logger = logging.getLogger(__name__)


class UserService:
    """Member lifecycle and progress."""

    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Пользователь не найден")
        return user

    async def get_or_create(
        self,
        user_id: int,
        first_name: str | None = None,
        username: str | None = None,
    ) -> tuple[User, bool]:
        """Return ``(user, existed)``, creating an unregistered user on first contact."""
        if user_id <= 0:
            raise ValidationError("Некорректный идентификатор пользователя")

        now = utcnow()
        user = await self.db.get(User, user_id)
        if user is not None:
            user.last_active = now
            await self.db.flush()
            return user, True

        sparks = await policy_value(self.db, self.settings, "default_sparks")
        user = User(
            user_id=user_id,
            first_name=first_name,
            username=username,
            sparks=sparks,
            level=level_title(sparks),
            is_registered=False,
            last_active=now,
            created_at=now,
        )
        self.db.add(user)
        await self.db.flush()
        logger.info("User created: %s", user_id)
        return user, False

    async def _resolve_role_character(self, role_id: int, character_id: int) -> tuple[Role, Character]:
        role = await self.db.get(Role, role_id)
        if role is None or not role.is_active:
            raise ValidationError("Роль не найдена")
        character = await self.db.get(Character, character_id)
        if character is None or not character.is_active:
            raise ValidationError("Персонаж не найден")
        if character.role_id != role.id:
            raise ValidationError("Персонаж не принадлежит выбранной роли")
        return role, character

    async def register(
        self,
        user_id: int,
        first_name: str,
        role_id: int,
        character_id: int,
        username: str | None = None,
    ) -> User:
        """Complete registration with a role and character. Sparks are left unchanged."""
        role, character = await self._resolve_role_character(role_id, character_id)
        user, _ = await self.get_or_create(user_id, first_name, username)
        first_registration = not user.is_registered

        now = utcnow()
        user.first_name = first_name
        if username is not None:
            user.username = username
        user.role_id = role.id
        user.role_name = role.name
        user.character_id = character.id
        user.is_registered = True
        user.last_active = now
        if first_registration:
            user.registration_date = now
        await self.db.flush()

        if first_registration:
            await record_activity(self.db, user_id, "registration", "Регистрация")
            await notify(
                self.db,
                user_id,
                "welcome",
                "🎉 Добро пожаловать!",
                "Вы успешно зарегистрировались в Мастерской Вдохновения! "
                "Начните с прохождения первого квиза.",
                action_url="/quizzes",
            )
            await check_achievements(self.db, user_id)
        logger.info("User registered: %s role=%s character=%s", user_id, role.id, character.id)
        return user

    async def change_role(self, user_id: int, role_id: int, character_id: int) -> User:
        """Switch role and character, keeping sparks and history."""
        role, character = await self._resolve_role_character(role_id, character_id)
        user = await self.get_user(user_id)
        if not user.is_registered:
            raise ValidationError("Пользователь не зарегистрирован")

        old_role = user.role_name
        user.role_id = role.id
        user.role_name = role.name
        user.character_id = character.id
        user.last_active = utcnow()
        await self.db.flush()

        await record_activity(
            self.db,
            user_id,
            "role_change",
            f"Смена роли: {old_role} → {role.name}",
            details={"role_id": role.id, "character_id": character.id},
        )
        return user

    async def describe(self, user: User) -> dict[str, Any]:
        """User row plus role capabilities and character details."""
        role = await self.db.get(Role, user.role_id) if user.role_id else None
        character = await self.db.get(Character, user.character_id) if user.character_id else None
        return user_to_dict(user, role, character)

    async def get_profile(self, user_id: int) -> dict[str, Any]:
        user = await self.get_user(user_id)
        profile = await self.describe(user)
        profile["stats"] = await self.get_stats(user)
        profile["unread_notifications"] = await unread_count(self.db, user_id)
        return profile

    async def _count(self, model: type, *criteria: Any) -> int:
        value = await self.db.scalar(select(func.count()).select_from(model).where(*criteria))
        return value or 0

    async def get_stats(self, user: User) -> dict[str, Any]:
        """Aggregate counters shown on the profile screen and in admin reports."""
        uid = user.user_id
        earned = await self.db.scalar(
            select(func.coalesce(func.sum(Activity.sparks_earned), 0)).where(
                Activity.user_id == uid, Activity.sparks_earned > 0
            )
        )
        return {
            "total_activities": await self._count(Activity, Activity.user_id == uid),
            "today_activities": await self._count(
                Activity, Activity.user_id == uid, Activity.created_at >= start_of_day()
            ),
            "total_purchases": await self._count(Purchase, Purchase.user_id == uid),
            "total_works": await self._count(UserWork, UserWork.user_id == uid),
            "approved_works": await self._count(UserWork, UserWork.user_id == uid, UserWork.status == "approved"),
            "total_quizzes_completed": await self._count(QuizCompletion, QuizCompletion.user_id == uid),
            "total_marathons_completed": await self._count(
                MarathonProgress, MarathonProgress.user_id == uid, MarathonProgress.completed.is_(True)
            ),
            "total_interactives_completed": await self._count(
                InteractiveCompletion, InteractiveCompletion.user_id == uid
            ),
            "total_achievements": await self._count(UserAchievement, UserAchievement.user_id == uid),
            "total_sparks_earned": float(earned or 0),
            "streak": await self.activity_streak(uid),
            "level": compute_level(user.sparks),
        }

    async def activity_streak(self, user_id: int) -> int:
        """Consecutive days with at least one activity, ending today."""
        since = start_of_day() - timedelta(days=366)
        result = await self.db.execute(
            select(Activity.created_at).where(Activity.user_id == user_id, Activity.created_at >= since)
        )
        days: set[date] = {ensure_utc(ts).date() for ts in result.scalars().all()}  # type: ignore[union-attr]

        streak = 0
        day = utcnow().date()
        while day in days:
            streak += 1
            day -= timedelta(days=1)
        return streak


def user_to_dict(user: User, role: Role | None = None, character: Character | None = None) -> dict[str, Any]:
    return {
        "user_id": user.user_id,
        "first_name": user.first_name,
        "username": user.username,
        "role_id": user.role_id,
        "role": user.role_name,
        "character_id": user.character_id,
        "character_name": character.name if character else None,
        "character_bonus_type": character.bonus_type if character else None,
        "available_buttons": list(role.available_buttons) if role else [],
        "sparks": user.sparks,
        "level": user.level,
        "is_registered": user.is_registered,
        "registration_date": isoformat(user.registration_date),
        "last_active": isoformat(user.last_active),
        "status": user.status,
    }
