"""Quiz endpoints for the Mini-App plus admin quiz statistics."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.dependencies import require_admin
from workshop.config import Settings
from workshop.dependencies import get_app_settings, get_db
from workshop.quizzes.engine import QuizEngine
from workshop.quizzes.schemas import QuizSubmitRequest

logger = structlog.get_logger()

router = APIRouter(prefix="/api/webapp/quizzes", tags=["Quizzes"])
admin_router = APIRouter(prefix="/api/admin/quizzes", tags=["Admin: quizzes"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_quizzes(
    user_id: int | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> list[dict[str, Any]]:
    """Active quizzes with the caller's completion state."""
    return await QuizEngine(db, settings).list_quizzes(user_id)


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    return await QuizEngine(db, settings).get_quiz(quiz_id)


@router.get("/{quiz_id}/results")
async def get_results(
    quiz_id: int,
    user_id: int = Query(..., alias="userId"),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    return await QuizEngine(db, settings).get_results(quiz_id, user_id)


@router.post("/{quiz_id}/submit")
async def submit_quiz(
    quiz_id: int,
    body: QuizSubmitRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Score an attempt and credit sparks."""
    result = await QuizEngine(db, settings).submit(quiz_id, body.user_id, body.answers)
    await db.commit()
    logger.info(
        "quiz_submitted",
        quiz_id=quiz_id,
        user_id=body.user_id,
        score=result["correct_answers"],
        sparks=result["sparks_earned"],
    )
    return {"success": True, **result}


@admin_router.get("/{quiz_id}/stats")
async def quiz_stats(
    quiz_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    return await QuizEngine(db, settings).stats(quiz_id)
