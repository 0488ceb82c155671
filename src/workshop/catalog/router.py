"""Catalog endpoints.

``router`` serves the Mini-App (roles, characters, channel posts);
``admin_router`` is the admin panel CRUD over every catalog entity.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.dependencies import require_admin
from workshop.catalog.schemas import (
    AchievementIn,
    CharacterIn,
    InteractiveIn,
    MarathonIn,
    PostIn,
    QuizIn,
    RoleIn,
    ShopItemIn,
    StatusUpdate,
)
from workshop.catalog.service import (
    CatalogService,
    character_to_dict,
    interactive_to_dict,
    marathon_to_dict,
    post_to_dict,
    quiz_to_dict,
    role_to_dict,
    shop_item_to_dict,
)
from workshop.db.models import Admin, Interactive, Quiz
from workshop.dependencies import get_db
from workshop.exceptions import NotFoundError
from workshop.gamification.achievements import achievement_to_dict

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp", tags=["Catalog"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin: catalog"], dependencies=[Depends(require_admin)])


def _ok(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": True, "message": message, **extra}


# ---------------------------------------------------------------------------
# Mini-App
# ---------------------------------------------------------------------------


@router.get("/roles")
async def list_roles(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    """Active roles for the registration screen."""
    roles = await CatalogService(db).list_roles(active_only=True)
    return [role_to_dict(r) for r in roles]


@router.get("/characters/{role_id}")
async def list_characters(role_id: int, db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    characters = await CatalogService(db).list_characters(role_id=role_id, active_only=True)
    return [character_to_dict(c) for c in characters]


@router.get("/channel-posts")
async def list_channel_posts(
    user_id: int | None = Query(None, alias="userId"),
    featured: bool = False,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Active posts with review stats and the caller's own review."""
    return await CatalogService(db).list_posts_for_user(user_id, featured, limit, offset)


@router.get("/channel-posts/{post_id}")
async def get_channel_post(
    post_id: str,
    user_id: int | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    svc = CatalogService(db)
    post = await svc.get_post(post_id)
    if not post.is_active:
        raise NotFoundError("Пост не найден")
    return await svc.describe_post(post, user_id)


# ---------------------------------------------------------------------------
# Admin: roles and characters
# ---------------------------------------------------------------------------


@admin_router.get("/roles")
async def admin_list_roles(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [role_to_dict(r) for r in await CatalogService(db).list_roles()]


@admin_router.post("/roles")
async def admin_create_role(body: RoleIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    role = await CatalogService(db).create_role(body)
    await db.commit()
    logger.info("role_created", role_id=role.id)
    return _ok("Роль создана", role=role_to_dict(role))


@admin_router.put("/roles/{role_id}")
async def admin_update_role(role_id: int, body: RoleIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    role = await CatalogService(db).update_role(role_id, body)
    await db.commit()
    return _ok("Роль обновлена", role=role_to_dict(role))


@admin_router.delete("/roles/{role_id}")
async def admin_delete_role(role_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_role(role_id)
    await db.commit()
    logger.info("role_deleted", role_id=role_id)
    return _ok("Роль удалена")


@admin_router.get("/characters")
async def admin_list_characters(
    role_id: int | None = Query(None, alias="roleId"),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    return [character_to_dict(c) for c in await CatalogService(db).list_characters(role_id=role_id)]


@admin_router.post("/characters")
async def admin_create_character(body: CharacterIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    character = await CatalogService(db).create_character(body)
    await db.commit()
    return _ok("Персонаж создан", character=character_to_dict(character))


@admin_router.put("/characters/{character_id}")
async def admin_update_character(
    character_id: int, body: CharacterIn, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    character = await CatalogService(db).update_character(character_id, body)
    await db.commit()
    return _ok("Персонаж обновлен", character=character_to_dict(character))


@admin_router.delete("/characters/{character_id}")
async def admin_delete_character(character_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_character(character_id)
    await db.commit()
    return _ok("Персонаж удален")


# ---------------------------------------------------------------------------
# Admin: quizzes, marathons, interactives
# ---------------------------------------------------------------------------


@admin_router.get("/quizzes")
async def admin_list_quizzes(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [quiz_to_dict(q) for q in await CatalogService(db).list_quizzes()]


@admin_router.post("/quizzes")
async def admin_create_quiz(body: QuizIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    quiz = await CatalogService(db).create_quiz(body)
    await db.commit()
    logger.info("quiz_created", quiz_id=quiz.id, questions=len(quiz.questions))
    return _ok("Квиз создан", quiz=quiz_to_dict(quiz))


@admin_router.put("/quizzes/{quiz_id}")
async def admin_update_quiz(quiz_id: int, body: QuizIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    quiz = await CatalogService(db).update_quiz(quiz_id, body)
    await db.commit()
    return _ok("Квиз обновлен", quiz=quiz_to_dict(quiz))


@admin_router.put("/quizzes/{quiz_id}/status")
async def admin_quiz_status(quiz_id: int, body: StatusUpdate, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    quiz = await CatalogService(db).set_active(Quiz, quiz_id, body.is_active)
    await db.commit()
    return _ok("Статус квиза обновлен", quiz=quiz_to_dict(quiz))


@admin_router.delete("/quizzes/{quiz_id}")
async def admin_delete_quiz(quiz_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_quiz(quiz_id)
    await db.commit()
    return _ok("Квиз удален")


@admin_router.get("/marathons")
async def admin_list_marathons(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [marathon_to_dict(m) for m in await CatalogService(db).list_marathons()]


@admin_router.post("/marathons")
async def admin_create_marathon(body: MarathonIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    marathon = await CatalogService(db).create_marathon(body)
    await db.commit()
    return _ok("Марафон создан", marathon=marathon_to_dict(marathon))


@admin_router.put("/marathons/{marathon_id}")
async def admin_update_marathon(
    marathon_id: int, body: MarathonIn, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    marathon = await CatalogService(db).update_marathon(marathon_id, body)
    await db.commit()
    return _ok("Марафон обновлен", marathon=marathon_to_dict(marathon))


@admin_router.delete("/marathons/{marathon_id}")
async def admin_delete_marathon(marathon_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_marathon(marathon_id)
    await db.commit()
    return _ok("Марафон удален")


@admin_router.get("/interactives")
async def admin_list_interactives(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [interactive_to_dict(i) for i in await CatalogService(db).list_interactives()]


@admin_router.post("/interactives")
async def admin_create_interactive(body: InteractiveIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    interactive = await CatalogService(db).create_interactive(body)
    await db.commit()
    return _ok("Интерактив создан", interactive=interactive_to_dict(interactive))


@admin_router.put("/interactives/{interactive_id}")
async def admin_update_interactive(
    interactive_id: int, body: InteractiveIn, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    interactive = await CatalogService(db).update_interactive(interactive_id, body)
    await db.commit()
    return _ok("Интерактив обновлен", interactive=interactive_to_dict(interactive))


@admin_router.put("/interactives/{interactive_id}/status")
async def admin_interactive_status(
    interactive_id: int, body: StatusUpdate, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    interactive = await CatalogService(db).set_active(Interactive, interactive_id, body.is_active)
    await db.commit()
    return _ok("Статус интерактива обновлен", interactive=interactive_to_dict(interactive))


@admin_router.delete("/interactives/{interactive_id}")
async def admin_delete_interactive(interactive_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_interactive(interactive_id)
    await db.commit()
    return _ok("Интерактив удален")


# ---------------------------------------------------------------------------
# Admin: shop, posts, achievements
# ---------------------------------------------------------------------------


@admin_router.get("/shop/items")
async def admin_list_shop_items(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    items = await CatalogService(db).list_shop_items()
    return [{**shop_item_to_dict(i), "file_url": i.file_url, "content_text": i.content_text} for i in items]


@admin_router.post("/shop/items")
async def admin_create_shop_item(body: ShopItemIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    item = await CatalogService(db).create_shop_item(body)
    await db.commit()
    return _ok("Товар создан", item=shop_item_to_dict(item))


@admin_router.put("/shop/items/{item_id}")
async def admin_update_shop_item(
    item_id: int, body: ShopItemIn, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    item = await CatalogService(db).update_shop_item(item_id, body)
    await db.commit()
    return _ok("Товар обновлен", item=shop_item_to_dict(item))


@admin_router.delete("/shop/items/{item_id}")
async def admin_delete_shop_item(item_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_shop_item(item_id)
    await db.commit()
    return _ok("Товар удален")


@admin_router.get("/channel-posts")
async def admin_list_posts(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [post_to_dict(p) for p in await CatalogService(db).list_posts()]


@admin_router.post("/channel-posts")
async def admin_create_post(
    body: PostIn,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    post = await CatalogService(db).create_post(body, admin_id=admin.user_id)
    await db.commit()
    return _ok("Пост создан", post=post_to_dict(post))


@admin_router.put("/channel-posts/{post_id}")
async def admin_update_post(post_id: str, body: PostIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    post = await CatalogService(db).update_post(post_id, body)
    await db.commit()
    return _ok("Пост обновлен", post=post_to_dict(post))


@admin_router.delete("/channel-posts/{post_id}")
async def admin_delete_post(post_id: str, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_post(post_id)
    await db.commit()
    return _ok("Пост удален")


@admin_router.get("/achievements")
async def admin_list_achievements(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return [achievement_to_dict(a) for a in await CatalogService(db).list_achievements()]


@admin_router.post("/achievements")
async def admin_create_achievement(body: AchievementIn, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    achievement = await CatalogService(db).create_achievement(body)
    await db.commit()
    return _ok("Достижение создано", achievement=achievement_to_dict(achievement))


@admin_router.put("/achievements/{achievement_id}")
async def admin_update_achievement(
    achievement_id: int, body: AchievementIn, db: AsyncSession = Depends(get_db)
) -> dict[str, Any]:
    achievement = await CatalogService(db).update_achievement(achievement_id, body)
    await db.commit()
    return _ok("Достижение обновлено", achievement=achievement_to_dict(achievement))


@admin_router.delete("/achievements/{achievement_id}")
async def admin_delete_achievement(achievement_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    await CatalogService(db).delete_achievement(achievement_id)
    await db.commit()
    return _ok("Достижение удалено")
