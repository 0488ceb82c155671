"""Marathon endpoints for the Mini-App plus the admin participants view."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.dependencies import require_admin
from workshop.dependencies import get_db
from workshop.marathons.engine import MarathonEngine
from workshop.marathons.schemas import SubmitDayRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp/marathons", tags=["Marathons"])
admin_router = APIRouter(
    prefix="/api/admin/marathons", tags=["Admin: marathons"], dependencies=[Depends(require_admin)]
)


@router.get("")
async def list_marathons(
    user_id: int | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    return await MarathonEngine(db).list_marathons(user_id)


@router.get("/{marathon_id}")
async def get_marathon(
    marathon_id: int,
    user_id: int = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Marathon detail; opening it starts the marathon for the user."""
    result = await MarathonEngine(db).start_or_resume(marathon_id, user_id)
    await db.commit()
    return result


@router.post("/{marathon_id}/submit-day")
async def submit_day(
    marathon_id: int,
    body: SubmitDayRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    result = await MarathonEngine(db).submit_day(marathon_id, body.user_id, body.day, body.submission_text)
    await db.commit()
    logger.info(
        "marathon_day_submitted",
        marathon_id=marathon_id,
        user_id=body.user_id,
        day=body.day,
        already_submitted=result["already_submitted"],
    )
    return result


@admin_router.get("/{marathon_id}/participants")
async def participants(marathon_id: int, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await MarathonEngine(db).participants(marathon_id)
