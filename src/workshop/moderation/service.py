"""User-generated content: work uploads, post reviews and their moderation."""

from __future__ import annotations

import logging
from typing import Any, Literal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.db.enums import ModerationStatus
from workshop.db.models import ChannelPost, PostReview, User, UserWork
from workshop.exceptions import ConflictError, NotFoundError, ValidationError, WorkshopError
from workshop.gamification.notifications import notify
from workshop.moderation.state import validate_decision, validate_transition
from workshop.policy import policy_value
from workshop.users.sparks import adjust_sparks
from workshop.utils import isoformat, start_of_day, utcnow

logger = logging.getLogger(__name__)

Kind = Literal["work", "review"]


class ModerationService:
    """Submission of works and reviews, and the admin moderation queue."""

    def __init__(self, db: AsyncSession, settings: Settings) -> None:
        self.db = db
        self.settings = settings

    async def _require_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("Пользователь не найден")
        return user

    # --- Submissions ---

    async def upload_work(
        self,
        user_id: int,
        title: str,
        image_url: str,
        description: str = "",
        category: str = "other",
    ) -> dict[str, Any]:
        if not title.strip() or not image_url.strip():
            raise ValidationError("Название и изображение обязательны")
        await self._require_user(user_id)

        limit = int(await policy_value(self.db, self.settings, "max_works_per_day"))
        today = await self.db.scalar(
            select(func.count())
            .select_from(UserWork)
            .where(UserWork.user_id == user_id, UserWork.created_at >= start_of_day())
        )
        if (today or 0) >= limit:
            raise ValidationError(f"Можно загружать не более {limit} работ в день")

        work = UserWork(
            user_id=user_id,
            title=title.strip(),
            description=description,
            image_url=image_url.strip(),
            category=category or "other",
            status=ModerationStatus.PENDING.value,
            created_at=utcnow(),
        )
        self.db.add(work)
        await self.db.flush()

        reward = await policy_value(self.db, self.settings, "upload_work_sparks")
        approve_reward = await policy_value(self.db, self.settings, "work_approved_sparks")
        await adjust_sparks(
            self.db,
            user_id,
            reward,
            "work_upload",
            f"Загрузка работы: {work.title}",
            {"work_id": work.id},
        )
        logger.info("Work uploaded: user=%s work=%s", user_id, work.id)
        return {
            "work_id": work.id,
            "status": work.status,
            "sparks_earned": reward,
            "message": (
                f"Работа отправлена на модерацию! +{reward:g}✨ "
                f"После одобрения вы получите еще +{approve_reward:g}✨"
            ),
        }

    async def list_user_works(
        self,
        user_id: int,
        status: str | None = None,
        category: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        query = select(UserWork).where(UserWork.user_id == user_id)
        if status:
            query = query.where(UserWork.status == status)
        if category:
            query = query.where(UserWork.category == category)
        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(UserWork.created_at.desc(), UserWork.id.desc()).offset(offset).limit(limit)
        )
        return {
            "works": [work_to_dict(work) for work in result.scalars().all()],
            "total": total or 0,
            "limit": limit,
            "offset": offset,
        }

    async def review_post(self, post_id: str, user_id: int, review_text: str, rating: int = 5) -> dict[str, Any]:
        """One review per user per post; the first review of the day earns a bonus."""
        if not review_text.strip():
            raise ValidationError("Текст отзыва обязателен")
        if not 1 <= rating <= 5:
            raise ValidationError("Оценка должна быть от 1 до 5")
        await self._require_user(user_id)

        result = await self.db.execute(select(ChannelPost).where(ChannelPost.post_id == post_id))
        post = result.scalar_one_or_none()
        if post is None or not post.is_active:
            raise NotFoundError("Пост не найден")

        existing = await self.db.scalar(
            select(func.count())
            .select_from(PostReview)
            .where(PostReview.user_id == user_id, PostReview.post_id == post_id)
        )
        if existing:
            raise ConflictError("Вы уже оставили отзыв к этому посту")

        reviews_today = await self.db.scalar(
            select(func.count())
            .select_from(PostReview)
            .where(PostReview.user_id == user_id, PostReview.created_at >= start_of_day())
        )

        review = PostReview(
            user_id=user_id,
            post_id=post_id,
            review_text=review_text.strip(),
            rating=rating,
            status=ModerationStatus.PENDING.value,
            created_at=utcnow(),
        )
        self.db.add(review)
        await self.db.flush()

        reward = await policy_value(self.db, self.settings, "review_sparks")
        daily_bonus = 0.0
        if not reviews_today:
            daily_bonus = await policy_value(self.db, self.settings, "daily_comment_sparks")
        await adjust_sparks(
            self.db,
            user_id,
            reward,
            "post_review",
            f"Отзыв к посту: {post.title}",
            {"post_id": post_id, "review_id": review.id},
        )
        if daily_bonus:
            await adjust_sparks(
                self.db,
                user_id,
                daily_bonus,
                "daily_comment",
                "Первый отзыв за день",
                {"review_id": review.id},
            )

        total = reward + daily_bonus
        message = f"Отзыв отправлен! +{reward:g}✨"
        if daily_bonus:
            message += f" (+{daily_bonus:g}✨ за первый отзыв дня)"
        logger.info("Review created: user=%s post=%s review=%s", user_id, post_id, review.id)
        return {"review_id": review.id, "status": review.status, "sparks_earned": total, "message": message}

    # --- Moderation queue ---

    async def list_queue(self, kind: Kind, status: str | None = "pending") -> list[dict[str, Any]]:
        """Items awaiting (or past) moderation, oldest first, with author info."""
        if kind == "work":
            query = select(UserWork, User).outerjoin(User, User.user_id == UserWork.user_id)
            if status:
                query = query.where(UserWork.status == status)
            result = await self.db.execute(query.order_by(UserWork.created_at, UserWork.id))
            return [{**work_to_dict(work), **_author(user)} for work, user in result.all()]

        query = (
            select(PostReview, User, ChannelPost.title)
            .outerjoin(User, User.user_id == PostReview.user_id)
            .outerjoin(ChannelPost, ChannelPost.post_id == PostReview.post_id)
        )
        if status:
            query = query.where(PostReview.status == status)
        result = await self.db.execute(query.order_by(PostReview.created_at, PostReview.id))
        return [
            {**review_to_dict(review), **_author(user), "post_title": post_title}
            for review, user, post_title in result.all()
        ]

    async def moderate(
        self,
        kind: Kind,
        entity_id: int,
        decision: str,
        admin_id: int,
        comment: str | None = None,
        reward: float | None = None,
    ) -> dict[str, Any]:
        """Approve or reject a pending work or review."""
        validate_decision(decision)
        model = UserWork if kind == "work" else PostReview
        entity = await self.db.get(model, entity_id)
        if entity is None:
            raise NotFoundError("Работа не найдена" if kind == "work" else "Отзыв не найден")
        validate_transition(entity.status, decision)

        entity.status = decision
        entity.moderator_id = admin_id
        entity.admin_comment = comment
        entity.moderated_at = utcnow()
        await self.db.flush()

        sparks = 0.0
        approved = decision == ModerationStatus.APPROVED.value
        if kind == "work":
            if approved:
                sparks = reward if reward is not None else await policy_value(
                    self.db, self.settings, "work_approved_sparks"
                )
                await adjust_sparks(
                    self.db,
                    entity.user_id,
                    sparks,
                    "work_approved",
                    f"Работа одобрена: {entity.title}",
                    {"work_id": entity.id},
                )
                await notify(
                    self.db,
                    entity.user_id,
                    "work_approved",
                    "✨ Работа одобрена!",
                    f"Ваша работа «{entity.title}» одобрена! +{sparks:g}✨",
                    action_url="/works",
                )
            else:
                reason = f" Причина: {comment}" if comment else ""
                await notify(
                    self.db,
                    entity.user_id,
                    "work_rejected",
                    "❌ Работа отклонена",
                    f"Ваша работа «{entity.title}» отклонена.{reason}",
                    action_url="/works",
                )
        else:
            await notify(
                self.db,
                entity.user_id,
                "review_moderated",
                "💬 Отзыв одобрен" if approved else "💬 Отзыв отклонен",
                comment or ("Спасибо за ваш отзыв!" if approved else "Отзыв не прошел модерацию."),
            )

        logger.info("Moderated %s %s -> %s by %s", kind, entity_id, decision, admin_id)
        return {
            "id": entity_id,
            "status": decision,
            "sparks_awarded": sparks,
            "message": "Одобрено" if approved else "Отклонено",
        }

    async def moderate_batch(
        self,
        work_ids: list[int],
        decision: str,
        admin_id: int,
        comment: str | None = None,
    ) -> dict[str, Any]:
        """Moderate several works; each item succeeds or fails on its own.

        All checks run before an item is written, so a failed item leaves no
        partial state behind.
        """
        validate_decision(decision)
        results = []
        for work_id in work_ids:
            try:
                outcome = await self.moderate("work", work_id, decision, admin_id, comment)
            except WorkshopError as exc:
                results.append({"id": work_id, "success": False, "error": exc.message, "error_code": exc.error_code})
            else:
                results.append({"id": work_id, "success": True, "sparks_awarded": outcome["sparks_awarded"]})
        succeeded = sum(1 for r in results if r["success"])
        return {"results": results, "processed": succeeded, "failed": len(results) - succeeded}


def _author(user: User | None) -> dict[str, Any]:
    return {
        "first_name": user.first_name if user else None,
        "username": user.username if user else None,
    }


def work_to_dict(work: UserWork) -> dict[str, Any]:
    return {
        "id": work.id,
        "user_id": work.user_id,
        "title": work.title,
        "description": work.description,
        "image_url": work.image_url,
        "category": work.category,
        "status": work.status,
        "admin_comment": work.admin_comment,
        "moderator_id": work.moderator_id,
        "moderated_at": isoformat(work.moderated_at),
        "created_at": isoformat(work.created_at),
    }


def review_to_dict(review: PostReview) -> dict[str, Any]:
    return {
        "id": review.id,
        "user_id": review.user_id,
        "post_id": review.post_id,
        "review_text": review.review_text,
        "rating": review.rating,
        "status": review.status,
        "admin_comment": review.admin_comment,
        "moderator_id": review.moderator_id,
        "moderated_at": isoformat(review.moderated_at),
        "created_at": isoformat(review.created_at),
    }
