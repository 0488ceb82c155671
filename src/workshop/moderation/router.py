"""Work uploads, post reviews and the admin moderation queue."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.dependencies import require_admin
from workshop.config import Settings
from workshop.db.models import Admin
from workshop.dependencies import get_app_settings, get_db
from workshop.moderation.schemas import BatchModerateRequest, ModerateRequest, ReviewRequest, UploadWorkRequest
from workshop.moderation.service import ModerationService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp", tags=["Works"])
admin_router = APIRouter(prefix="/api/admin", tags=["Admin: moderation"], dependencies=[Depends(require_admin)])


@router.post("/upload-work")
async def upload_work(
    body: UploadWorkRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    result = await ModerationService(db, settings).upload_work(
        body.user_id, body.title, body.image_url, body.description, body.category
    )
    await db.commit()
    logger.info("work_uploaded", user_id=body.user_id, work_id=result["work_id"])
    return {"success": True, **result}


@router.get("/users/{user_id}/works")
async def list_user_works(
    user_id: int,
    status: str | None = None,
    category: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    return await ModerationService(db, settings).list_user_works(user_id, status, category, limit, offset)


@router.post("/posts/{post_id}/review")
async def review_post(
    post_id: str,
    body: ReviewRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    result = await ModerationService(db, settings).review_post(post_id, body.user_id, body.review_text, body.rating)
    await db.commit()
    logger.info("post_reviewed", user_id=body.user_id, post_id=post_id)
    return {"success": True, **result}


# ---------------------------------------------------------------------------
# Admin queue
# ---------------------------------------------------------------------------


@admin_router.get("/user-works")
async def admin_list_works(
    status: str | None = "pending",
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    """Works in the given status, oldest first. ``status=`` (empty) lists all."""
    return await ModerationService(db, settings).list_queue("work", status or None)


@admin_router.post("/user-works/batch-moderate")
async def admin_batch_moderate(
    body: BatchModerateRequest,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    result = await ModerationService(db, settings).moderate_batch(
        body.work_ids, body.status, admin.user_id, body.admin_comment
    )
    await db.commit()
    logger.info("works_batch_moderated", admin_id=admin.user_id, processed=result["processed"], failed=result["failed"])
    return {"success": True, **result}


@admin_router.post("/user-works/{work_id}/moderate")
async def admin_moderate_work(
    work_id: int,
    body: ModerateRequest,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    result = await ModerationService(db, settings).moderate(
        "work", work_id, body.status, admin.user_id, body.admin_comment, body.points_earned
    )
    await db.commit()
    logger.info("work_moderated", work_id=work_id, status=body.status, admin_id=admin.user_id)
    return {"success": True, **result}


@admin_router.get("/reviews")
async def admin_list_reviews(
    status: str | None = "pending",
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    return await ModerationService(db, settings).list_queue("review", status or None)


@admin_router.post("/reviews/{review_id}/moderate")
async def admin_moderate_review(
    review_id: int,
    body: ModerateRequest,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    result = await ModerationService(db, settings).moderate(
        "review", review_id, body.status, admin.user_id, body.admin_comment
    )
    await db.commit()
    logger.info("review_moderated", review_id=review_id, status=body.status, admin_id=admin.user_id)
    return {"success": True, **result}
