"""Activity history, achievements and notifications for the Mini-App."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.dependencies import get_app_settings, get_db
from workshop.gamification.achievements import claim_achievement, list_user_achievements
from workshop.gamification.notifications import list_notifications, mark_all_read, mark_read
from workshop.gamification.schemas import UserActionRequest
from workshop.users.sparks import activity_to_dict, list_activities

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp", tags=["Gamification"])


@router.get("/users/{user_id}/activities")
async def get_activities(
    user_id: int,
    limit: int | None = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Sparks history, newest first."""
    page = limit or settings.activity_page_size
    activities, total = await list_activities(db, user_id, page, offset)
    return {
        "activities": [activity_to_dict(a) for a in activities],
        "total": total,
        "limit": page,
        "offset": offset,
    }


@router.get("/users/{user_id}/achievements")
async def get_achievements(user_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await list_user_achievements(db, user_id)


@router.post("/achievements/{achievement_id}/claim")
async def claim(
    achievement_id: int,
    body: UserActionRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Credit an earned achievement's sparks reward."""
    reward = await claim_achievement(db, body.user_id, achievement_id)
    await db.commit()
    logger.info("achievement_claimed", user_id=body.user_id, achievement_id=achievement_id, sparks=reward)
    return {"success": True, "sparks_earned": reward, "message": f"Награда получена! +{reward:g}✨"}


@router.get("/users/{user_id}/notifications")
async def get_notifications(
    user_id: int,
    unread_only: bool = False,
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    return await list_notifications(db, user_id, unread_only, limit or settings.default_page_size, offset)


@router.post("/notifications/{notification_id}/read")
async def read_notification(
    notification_id: int,
    body: UserActionRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    await mark_read(db, notification_id, body.user_id)
    await db.commit()
    return {"success": True, "message": "Уведомление прочитано"}


@router.post("/notifications/mark-all-read")
async def read_all_notifications(body: UserActionRequest, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    updated = await mark_all_read(db, body.user_id)
    await db.commit()
    return {"success": True, "updated": updated, "message": "Все уведомления прочитаны"}
