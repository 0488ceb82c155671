"""Admin management, application settings and reporting."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.db.enums import AdminRole, ModerationStatus
from workshop.db.models import (
    Activity,
    Admin,
    AppSetting,
    ChannelPost,
    InteractiveCompletion,
    Interactive,
    Marathon,
    MarathonProgress,
    PostReview,
    Purchase,
    Quiz,
    QuizCompletion,
    Role,
    ShopItem,
    User,
    UserWork,
)
from workshop.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from workshop.utils import isoformat, start_of_day, utcnow

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _count(self, model: type, *criteria: Any) -> int:
        value = await self.db.scalar(select(func.count()).select_from(model).where(*criteria))
        return value or 0

    async def _sum(self, column: Any, *criteria: Any) -> float:
        value = await self.db.scalar(select(func.coalesce(func.sum(column), 0)).where(*criteria))
        return float(value or 0)

    # --- Access ---

    async def authenticate(self, user_id: int | None) -> Admin:
        """Resolve an active admin row for ``user_id`` and touch ``last_login``."""
        if user_id is None:
            raise AuthorizationError("Доступ запрещен")
        result = await self.db.execute(select(Admin).where(Admin.user_id == user_id))
        admin = result.scalar_one_or_none()
        if admin is None or not admin.is_active:
            raise AuthorizationError("Доступ запрещен")
        admin.last_login = utcnow()
        await self.db.flush()
        return admin

    # --- Admins ---

    async def list_admins(self) -> list[dict[str, Any]]:
        result = await self.db.execute(
            select(Admin, User.first_name)
            .outerjoin(User, User.user_id == Admin.user_id)
            .order_by(Admin.created_at, Admin.id)
        )
        return [{**admin_to_dict(admin), "first_name": first_name} for admin, first_name in result.all()]

    async def add_admin(self, user_id: int, username: str | None = None, role: str = "moderator") -> Admin:
        """Grant admin access, creating the user row on first sight."""
        if user_id <= 0:
            raise ValidationError("Некорректный идентификатор пользователя")
        role = AdminRole(role).value

        result = await self.db.execute(select(Admin).where(Admin.user_id == user_id))
        existing = result.scalar_one_or_none()
        if existing is not None and existing.is_active:
            raise ConflictError("Пользователь уже является администратором")

        if await self.db.get(User, user_id) is None:
            self.db.add(User(user_id=user_id, username=username, sparks=0, created_at=utcnow()))

        if existing is not None:
            existing.is_active = True
            existing.role = role
            existing.username = username or existing.username
            admin = existing
        else:
            admin = Admin(user_id=user_id, username=username, role=role, is_active=True, created_at=utcnow())
            self.db.add(admin)
        await self.db.flush()
        logger.info("Admin added: %s role=%s", user_id, role)
        return admin

    async def remove_admin(self, user_id: int, acting_admin_id: int) -> None:
        if user_id == acting_admin_id:
            raise ValidationError("Нельзя удалить самого себя")
        result = await self.db.execute(select(Admin).where(Admin.user_id == user_id))
        admin = result.scalar_one_or_none()
        if admin is None:
            raise NotFoundError("Администратор не найден")
        await self.db.delete(admin)
        await self.db.flush()
        logger.info("Admin removed: %s by %s", user_id, acting_admin_id)

    # --- Settings ---

    async def list_settings(self) -> list[dict[str, Any]]:
        result = await self.db.execute(select(AppSetting).order_by(AppSetting.key))
        return [setting_to_dict(row) for row in result.scalars().all()]

    async def update_settings(self, entries: list[dict[str, Any]]) -> int:
        """Upsert ``{key, value, description}`` entries. Returns how many were written."""
        now = utcnow()
        for entry in entries:
            key = str(entry.get("key", "")).strip()
            if not key:
                raise ValidationError("Ключ настройки обязателен")
            row = await self.db.get(AppSetting, key)
            if row is None:
                row = AppSetting(key=key, value=str(entry.get("value", "")))
                self.db.add(row)
            row.value = str(entry.get("value", ""))
            if entry.get("description") is not None:
                row.description = entry["description"]
            row.updated_at = now
        await self.db.flush()
        return len(entries)

    # --- Reports ---

    async def stats(self) -> dict[str, Any]:
        """Flat counters for the admin dashboard."""
        month_ago = utcnow() - timedelta(days=30)
        return {
            "totalUsers": await self._count(User),
            "registeredUsers": await self._count(User, User.is_registered.is_(True)),
            "activeUsers": await self._count(User, User.last_active >= month_ago),
            "newUsersToday": await self._count(User, User.created_at >= start_of_day()),
            "activeQuizzes": await self._count(Quiz, Quiz.is_active.is_(True)),
            "activeMarathons": await self._count(Marathon, Marathon.is_active.is_(True)),
            "shopItems": await self._count(ShopItem, ShopItem.is_active.is_(True)),
            "interactives": await self._count(Interactive, Interactive.is_active.is_(True)),
            "totalSparks": await self._sum(User.sparks),
            "totalAdmins": await self._count(Admin, Admin.is_active.is_(True)),
            "pendingReviews": await self._count(PostReview, PostReview.status == ModerationStatus.PENDING.value),
            "pendingWorks": await self._count(UserWork, UserWork.status == ModerationStatus.PENDING.value),
            "totalPosts": await self._count(ChannelPost),
            "totalPurchases": await self._count(Purchase),
            "totalActivities": await self._count(Activity),
            "totalEarnedSparks": await self._sum(Activity.sparks_earned, Activity.sparks_earned > 0),
            "totalSpentSparks": abs(await self._sum(Activity.sparks_earned, Activity.sparks_earned < 0)),
        }

    async def full_stats(self) -> dict[str, Any]:
        """Sectioned statistics: users, content, activities, completions, revenue."""
        today = start_of_day()
        week_ago = utcnow() - timedelta(days=7)

        by_role_result = await self.db.execute(
            select(User.role_name, func.count())
            .where(User.is_registered.is_(True))
            .group_by(User.role_name)
            .order_by(func.count().desc())
        )
        by_type_result = await self.db.execute(
            select(Activity.activity_type, func.count(), func.coalesce(func.sum(Activity.sparks_earned), 0))
            .group_by(Activity.activity_type)
            .order_by(func.count().desc())
        )
        by_item_result = await self.db.execute(
            select(ShopItem.id, ShopItem.title, func.count(Purchase.id), func.coalesce(func.sum(Purchase.price_paid), 0))
            .join(Purchase, Purchase.item_id == ShopItem.id)
            .group_by(ShopItem.id, ShopItem.title)
            .order_by(func.count(Purchase.id).desc())
        )

        return {
            "users": {
                "total": await self._count(User),
                "registered": await self._count(User, User.is_registered.is_(True)),
                "by_role": [{"role": role or "—", "count": count} for role, count in by_role_result.all()],
                "active_today": await self._count(User, User.last_active >= today),
                "active_week": await self._count(User, User.last_active >= week_ago),
                "new_today": await self._count(User, User.created_at >= today),
            },
            "content": {
                "roles": await self._count(Role),
                "quizzes": await self._count(Quiz),
                "marathons": await self._count(Marathon),
                "interactives": await self._count(Interactive),
                "shop_items": await self._count(ShopItem),
                "posts": await self._count(ChannelPost),
                "works": await self._count(UserWork),
                "reviews": await self._count(PostReview),
            },
            "activities": {
                "total": await self._count(Activity),
                "today": await self._count(Activity, Activity.created_at >= today),
                "by_type": [
                    {"type": activity_type, "count": count, "sparks": float(sparks)}
                    for activity_type, count, sparks in by_type_result.all()
                ],
            },
            "completions": {
                "quizzes": await self._count(QuizCompletion),
                "perfect_quizzes": await self._count(QuizCompletion, QuizCompletion.perfect_score.is_(True)),
                "marathons_started": await self._count(MarathonProgress),
                "marathons_completed": await self._count(MarathonProgress, MarathonProgress.completed.is_(True)),
                "interactives": await self._count(InteractiveCompletion),
            },
            "revenue": {
                "total_purchases": await self._count(Purchase),
                "total_spent": await self._sum(Purchase.price_paid),
                "by_item": [
                    {"item_id": item_id, "title": title, "purchases": count, "revenue": float(revenue)}
                    for item_id, title, count, revenue in by_item_result.all()
                ],
            },
        }

    async def users_report(self, limit: int = 100) -> list[dict[str, Any]]:
        """Registered users ordered by activity count."""
        activity_count = (
            select(Activity.user_id, func.count(Activity.id).label("total"))
            .group_by(Activity.user_id)
            .subquery()
        )
        result = await self.db.execute(
            select(User, func.coalesce(activity_count.c.total, 0))
            .outerjoin(activity_count, activity_count.c.user_id == User.user_id)
            .where(User.is_registered.is_(True))
            .order_by(func.coalesce(activity_count.c.total, 0).desc(), User.user_id)
            .limit(limit)
        )
        return [
            {
                "user_id": user.user_id,
                "first_name": user.first_name,
                "username": user.username,
                "role": user.role_name,
                "sparks": user.sparks,
                "level": user.level,
                "registration_date": isoformat(user.registration_date),
                "last_active": isoformat(user.last_active),
                "total_activities": total,
            }
            for user, total in result.all()
        ]


def admin_to_dict(admin: Admin) -> dict[str, Any]:
    return {
        "id": admin.id,
        "user_id": admin.user_id,
        "username": admin.username,
        "role": admin.role,
        "is_active": admin.is_active,
        "created_at": isoformat(admin.created_at),
        "last_login": isoformat(admin.last_login),
    }


def setting_to_dict(setting: AppSetting) -> dict[str, Any]:
    return {
        "key": setting.key,
        "value": setting.value,
        "description": setting.description,
        "updated_at": isoformat(setting.updated_at),
    }
