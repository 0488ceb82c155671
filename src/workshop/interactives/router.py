"""Interactive endpoints for the Mini-App."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.dependencies import get_db
from workshop.interactives.engine import InteractiveEngine
from workshop.interactives.schemas import InteractiveSubmitRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp/interactives", tags=["Interactives"])


@router.get("")
async def list_interactives(
    user_id: int | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    return await InteractiveEngine(db).list_interactives(user_id)


@router.post("/{interactive_id}/submit")
async def submit_interactive(
    interactive_id: int,
    body: InteractiveSubmitRequest,
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    result = await InteractiveEngine(db).submit(interactive_id, body.user_id, body.answer)
    await db.commit()
    logger.info("interactive_submitted", interactive_id=interactive_id, user_id=body.user_id, correct=result["correct"])
    return {"success": True, **result}
