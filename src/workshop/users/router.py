"""User endpoints: first contact, registration, role change, profile."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.config import Settings
from workshop.dependencies import get_app_settings, get_db
from workshop.users.schemas import ChangeRoleRequest, RegisterRequest
from workshop.users.service import UserService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/{user_id}")
async def get_user(
    user_id: int,
    first_name: str | None = Query(None, alias="firstName"),
    username: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Get a user, creating an unregistered one on first contact."""
    svc = UserService(db, settings)
    user, existed = await svc.get_or_create(user_id, first_name, username)
    data = await svc.describe(user)
    await db.commit()
    if not existed:
        logger.info("user_first_contact", user_id=user_id)
    return {"exists": existed, "user": data}


@router.get("/{user_id}/profile")
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """User with progress stats."""
    return await UserService(db, settings).get_profile(user_id)


@router.post("/register")
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    svc = UserService(db, settings)
    user = await svc.register(body.user_id, body.first_name, body.role_id, body.character_id, body.username)
    data = await svc.describe(user)
    await db.commit()
    logger.info("user_registered", user_id=body.user_id, role_id=body.role_id)
    return {"success": True, "message": "Регистрация завершена", "user": data}


@router.post("/change-role")
async def change_role(
    body: ChangeRoleRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    svc = UserService(db, settings)
    user = await svc.change_role(body.user_id, body.role_id, body.character_id)
    data = await svc.describe(user)
    await db.commit()
    logger.info("user_role_changed", user_id=body.user_id, role_id=body.role_id)
    return {"success": True, "message": "Роль изменена", "user": data}
