"""Catalog service: CRUD over roles, characters, quizzes, marathons,
interactives, shop items, channel posts and achievements.

Deletion policy: an entity that other rows still depend on is never deleted
partially. Roles with characters or members, characters chosen by members and
shop items with purchases are refused with ConflictError (deactivate them
instead). Quizzes, marathons, interactives, posts and achievements take their
per-user progress rows with them.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from pydantic import BaseModel
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.catalog.schemas import (
    AchievementIn,
    CharacterIn,
    InteractiveIn,
    MarathonIn,
    PostIn,
    QuizIn,
    RoleIn,
    ShopItemIn,
)
from workshop.db.base import Base
from workshop.db.models import (
    Achievement,
    ChannelPost,
    Character,
    Interactive,
    InteractiveCompletion,
    Marathon,
    MarathonProgress,
    MarathonSubmission,
    PostReview,
    Purchase,
    Quiz,
    QuizCompletion,
    Role,
    ShopItem,
    User,
    UserAchievement,
)
from workshop.exceptions import ConflictError, NotFoundError, ValidationError
from workshop.utils import isoformat

logger = logging.getLogger(__name__)


def _plain(payload: BaseModel) -> dict[str, Any]:
    """Dump a request model to column values (enums as their string values)."""
    return payload.model_dump(mode="json")


class CatalogService:
    """Admin-managed content shared by the Mini-App and the admin panel."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # --- Generic helpers ---

    async def _get(self, model: type[Base], entity_id: Any, label: str) -> Any:
        entity = await self.db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{label} не найден(а)")
        return entity

    async def _create(self, model: type[Base], values: dict[str, Any]) -> Any:
        entity = model(**values)
        self.db.add(entity)
        await self.db.flush()
        logger.info("Catalog create: %s id=%s", model.__tablename__, getattr(entity, "id", None))
        return entity

    async def _update(self, entity: Any, values: dict[str, Any]) -> Any:
        for key, value in values.items():
            setattr(entity, key, value)
        await self.db.flush()
        return entity

    async def _count(self, model: type[Base], *criteria: Any) -> int:
        value = await self.db.scalar(select(func.count()).select_from(model).where(*criteria))
        return value or 0

    async def _list(self, model: Any, *order_by: Any, active_only: bool = False) -> list[Any]:
        query = select(model)
        if active_only:
            query = query.where(model.is_active.is_(True))
        result = await self.db.execute(query.order_by(*order_by))
        return list(result.scalars().all())

    async def set_active(self, model: type[Base], entity_id: int, is_active: bool) -> Any:
        entity = await self._get(model, entity_id, model.__name__)
        entity.is_active = is_active
        await self.db.flush()
        return entity

    # --- Roles ---

    async def list_roles(self, active_only: bool = False) -> list[Role]:
        return await self._list(Role, Role.display_order, Role.id, active_only=active_only)

    async def get_role(self, role_id: int) -> Role:
        return await self._get(Role, role_id, "Роль")

    async def create_role(self, payload: RoleIn) -> Role:
        return await self._create(Role, _plain(payload))

    async def update_role(self, role_id: int, payload: RoleIn) -> Role:
        role = await self.get_role(role_id)
        values = _plain(payload)
        await self._update(role, values)
        # Denormalized label on members
        result = await self.db.execute(select(User).where(User.role_id == role_id))
        for user in result.scalars().all():
            user.role_name = role.name
        await self.db.flush()
        return role

    async def delete_role(self, role_id: int) -> None:
        role = await self.get_role(role_id)
        characters = await self._count(Character, Character.role_id == role_id)
        if characters:
            raise ConflictError(f"Нельзя удалить роль: у неё {characters} персонаж(ей)")
        members = await self._count(User, User.role_id == role_id)
        if members:
            raise ConflictError(f"Нельзя удалить роль: её выбрали {members} пользователь(ей)")
        await self.db.delete(role)
        await self.db.flush()

    # --- Characters ---

    async def list_characters(self, role_id: int | None = None, active_only: bool = False) -> list[Character]:
        query = select(Character)
        if role_id is not None:
            query = query.where(Character.role_id == role_id)
        if active_only:
            query = query.where(Character.is_active.is_(True))
        result = await self.db.execute(query.order_by(Character.id))
        return list(result.scalars().all())

    async def _check_role_link(self, role_id: int) -> None:
        role = await self.db.get(Role, role_id)
        if role is None or not role.is_active:
            raise ValidationError("Персонаж должен принадлежать существующей активной роли")

    async def create_character(self, payload: CharacterIn) -> Character:
        await self._check_role_link(payload.role_id)
        return await self._create(Character, _plain(payload))

    async def update_character(self, character_id: int, payload: CharacterIn) -> Character:
        character = await self._get(Character, character_id, "Персонаж")
        await self._check_role_link(payload.role_id)
        return await self._update(character, _plain(payload))

    async def delete_character(self, character_id: int) -> None:
        character = await self._get(Character, character_id, "Персонаж")
        members = await self._count(User, User.character_id == character_id)
        if members:
            raise ConflictError(f"Нельзя удалить персонажа: его выбрали {members} пользователь(ей)")
        await self.db.delete(character)
        await self.db.flush()

    # --- Quizzes ---

    async def list_quizzes(self) -> list[Quiz]:
        return await self._list(Quiz, Quiz.id)

    async def create_quiz(self, payload: QuizIn) -> Quiz:
        return await self._create(Quiz, _plain(payload))

    async def update_quiz(self, quiz_id: int, payload: QuizIn) -> Quiz:
        quiz = await self._get(Quiz, quiz_id, "Квиз")
        return await self._update(quiz, _plain(payload))

    async def delete_quiz(self, quiz_id: int) -> None:
        quiz = await self._get(Quiz, quiz_id, "Квиз")
        await self.db.execute(delete(QuizCompletion).where(QuizCompletion.quiz_id == quiz_id))
        await self.db.delete(quiz)
        await self.db.flush()

    # --- Marathons ---

    async def list_marathons(self) -> list[Marathon]:
        return await self._list(Marathon, Marathon.id)

    async def create_marathon(self, payload: MarathonIn) -> Marathon:
        return await self._create(Marathon, _plain(payload))

    async def update_marathon(self, marathon_id: int, payload: MarathonIn) -> Marathon:
        marathon = await self._get(Marathon, marathon_id, "Марафон")
        return await self._update(marathon, _plain(payload))

    async def delete_marathon(self, marathon_id: int) -> None:
        marathon = await self._get(Marathon, marathon_id, "Марафон")
        await self.db.execute(delete(MarathonSubmission).where(MarathonSubmission.marathon_id == marathon_id))
        await self.db.execute(delete(MarathonProgress).where(MarathonProgress.marathon_id == marathon_id))
        await self.db.delete(marathon)
        await self.db.flush()

    # --- Interactives ---

    async def list_interactives(self) -> list[Interactive]:
        return await self._list(Interactive, Interactive.id)

    async def create_interactive(self, payload: InteractiveIn) -> Interactive:
        return await self._create(Interactive, _plain(payload))

    async def update_interactive(self, interactive_id: int, payload: InteractiveIn) -> Interactive:
        interactive = await self._get(Interactive, interactive_id, "Интерактив")
        return await self._update(interactive, _plain(payload))

    async def delete_interactive(self, interactive_id: int) -> None:
        interactive = await self._get(Interactive, interactive_id, "Интерактив")
        await self.db.execute(
            delete(InteractiveCompletion).where(InteractiveCompletion.interactive_id == interactive_id)
        )
        await self.db.delete(interactive)
        await self.db.flush()

    # --- Shop items ---

    async def list_shop_items(self, active_only: bool = False) -> list[ShopItem]:
        return await self._list(ShopItem, ShopItem.id, active_only=active_only)

    async def get_shop_item(self, item_id: int, active_only: bool = False) -> ShopItem:
        item = await self._get(ShopItem, item_id, "Товар")
        if active_only and not item.is_active:
            raise NotFoundError("Товар не найден(а)")
        return item

    async def create_shop_item(self, payload: ShopItemIn) -> ShopItem:
        return await self._create(ShopItem, _plain(payload))

    async def update_shop_item(self, item_id: int, payload: ShopItemIn) -> ShopItem:
        item = await self._get(ShopItem, item_id, "Товар")
        return await self._update(item, _plain(payload))

    async def delete_shop_item(self, item_id: int) -> None:
        item = await self._get(ShopItem, item_id, "Товар")
        purchases = await self._count(Purchase, Purchase.item_id == item_id)
        if purchases:
            raise ConflictError("Нельзя удалить товар с покупками, деактивируйте его")
        await self.db.delete(item)
        await self.db.flush()

    # --- Channel posts ---

    async def get_post(self, post_id: str) -> ChannelPost:
        result = await self.db.execute(select(ChannelPost).where(ChannelPost.post_id == post_id))
        post = result.scalar_one_or_none()
        if post is None and post_id.isdigit():
            post = await self.db.get(ChannelPost, int(post_id))
        if post is None:
            raise NotFoundError("Пост не найден")
        return post

    async def list_posts(self) -> list[ChannelPost]:
        return await self._list(ChannelPost, ChannelPost.created_at.desc(), ChannelPost.id.desc())

    async def create_post(self, payload: PostIn, admin_id: int | None = None) -> ChannelPost:
        values = _plain(payload)
        values["post_id"] = values.get("post_id") or f"post_{uuid.uuid4().hex[:12]}"
        taken = await self._count(ChannelPost, ChannelPost.post_id == values["post_id"])
        if taken:
            raise ConflictError("Пост с таким идентификатором уже существует")
        values["admin_id"] = admin_id
        return await self._create(ChannelPost, values)

    async def update_post(self, post_id: str, payload: PostIn) -> ChannelPost:
        post = await self.get_post(post_id)
        values = _plain(payload)
        # The public slug is referenced by reviews and never changes
        values.pop("post_id", None)
        return await self._update(post, values)

    async def delete_post(self, post_id: str) -> None:
        post = await self.get_post(post_id)
        await self.db.execute(delete(PostReview).where(PostReview.post_id == post.post_id))
        await self.db.delete(post)
        await self.db.flush()

    async def list_posts_for_user(
        self,
        user_id: int | None = None,
        featured: bool = False,
        limit: int = 20,
        offset: int = 0,
    ) -> dict[str, Any]:
        """Active posts, newest first, with review count, average rating and the user's review."""
        base = select(ChannelPost).where(ChannelPost.is_active.is_(True))
        if featured:
            base = base.where(ChannelPost.featured.is_(True))
        total = await self.db.scalar(select(func.count()).select_from(base.subquery()))
        result = await self.db.execute(
            base.order_by(ChannelPost.created_at.desc(), ChannelPost.id.desc()).offset(offset).limit(limit)
        )
        posts = [await self.describe_post(post, user_id) for post in result.scalars().all()]
        return {"posts": posts, "total": total or 0, "limit": limit, "offset": offset}

    async def describe_post(self, post: ChannelPost, user_id: int | None = None) -> dict[str, Any]:
        stats = await self.db.execute(
            select(func.count(PostReview.id), func.avg(PostReview.rating)).where(PostReview.post_id == post.post_id)
        )
        count, average = stats.one()
        user_review = None
        if user_id is not None:
            result = await self.db.execute(
                select(PostReview).where(PostReview.post_id == post.post_id, PostReview.user_id == user_id)
            )
            review = result.scalar_one_or_none()
            if review is not None:
                user_review = {
                    "id": review.id,
                    "review_text": review.review_text,
                    "rating": review.rating,
                    "status": review.status,
                }
        return {
            **post_to_dict(post),
            "reviews_count": count or 0,
            "average_rating": round(float(average), 2) if average is not None else 0,
            "user_review": user_review,
        }

    # --- Achievements ---

    async def list_achievements(self) -> list[Achievement]:
        return await self._list(Achievement, Achievement.id)

    async def create_achievement(self, payload: AchievementIn) -> Achievement:
        return await self._create(Achievement, _plain(payload))

    async def update_achievement(self, achievement_id: int, payload: AchievementIn) -> Achievement:
        achievement = await self._get(Achievement, achievement_id, "Достижение")
        return await self._update(achievement, _plain(payload))

    async def delete_achievement(self, achievement_id: int) -> None:
        achievement = await self._get(Achievement, achievement_id, "Достижение")
        await self.db.execute(delete(UserAchievement).where(UserAchievement.achievement_id == achievement_id))
        await self.db.delete(achievement)
        await self.db.flush()


# ---------------------------------------------------------------------------
# Serializers
# ---------------------------------------------------------------------------


def role_to_dict(role: Role) -> dict[str, Any]:
    return {
        "id": role.id,
        "name": role.name,
        "description": role.description,
        "icon": role.icon,
        "display_order": role.display_order,
        "is_active": role.is_active,
        "available_buttons": list(role.available_buttons),
    }


def character_to_dict(character: Character) -> dict[str, Any]:
    return {
        "id": character.id,
        "role_id": character.role_id,
        "name": character.name,
        "description": character.description,
        "bonus_type": character.bonus_type,
        "bonus_value": character.bonus_value,
        "is_active": character.is_active,
    }


def quiz_to_dict(quiz: Quiz, include_answers: bool = True) -> dict[str, Any]:
    if include_answers:
        questions = [dict(q) for q in quiz.questions]
    else:
        questions = [
            {"index": i, "question": q.get("question"), "options": q.get("options", [])}
            for i, q in enumerate(quiz.questions)
        ]
    return {
        "id": quiz.id,
        "title": quiz.title,
        "description": quiz.description,
        "questions": questions,
        "sparks_per_correct": quiz.sparks_per_correct,
        "sparks_perfect_bonus": quiz.sparks_perfect_bonus,
        "cooldown_hours": quiz.cooldown_hours,
        "allow_retake": quiz.allow_retake,
        "max_attempts_per_day": quiz.max_attempts_per_day,
        "difficulty": quiz.difficulty,
        "is_active": quiz.is_active,
    }


def marathon_to_dict(marathon: Marathon) -> dict[str, Any]:
    return {
        "id": marathon.id,
        "title": marathon.title,
        "description": marathon.description,
        "duration_days": marathon.duration_days,
        "tasks": list(marathon.tasks),
        "sparks_per_day": marathon.sparks_per_day,
        "sparks_completion_bonus": marathon.sparks_completion_bonus,
        "difficulty": marathon.difficulty,
        "is_active": marathon.is_active,
    }


def interactive_to_dict(interactive: Interactive, include_answer: bool = True) -> dict[str, Any]:
    data = {
        "id": interactive.id,
        "title": interactive.title,
        "description": interactive.description,
        "question": interactive.question,
        "options": list(interactive.options),
        "sparks_reward": interactive.sparks_reward,
        "allow_retake": interactive.allow_retake,
        "is_active": interactive.is_active,
    }
    if include_answer:
        data["correct_answer"] = interactive.correct_answer
        data["explanation"] = interactive.explanation
    return data


def shop_item_to_dict(item: ShopItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "title": item.title,
        "description": item.description,
        "type": item.type,
        "price": item.price,
        "discount_percent": item.discount_percent,
        "preview_url": item.preview_url,
        "is_active": item.is_active,
    }


def post_to_dict(post: ChannelPost) -> dict[str, Any]:
    return {
        "id": post.id,
        "post_id": post.post_id,
        "title": post.title,
        "content": post.content,
        "image_url": post.image_url,
        "featured": post.featured,
        "is_active": post.is_active,
        "created_at": isoformat(post.created_at),
    }
