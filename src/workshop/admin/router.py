"""Admin management, settings and reporting endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.dependencies import require_admin
from workshop.admin.schemas import AdminCreateRequest, SettingsUpdateRequest
from workshop.admin.service import AdminService, admin_to_dict
from workshop.db.models import Admin
from workshop.dependencies import get_db

logger = structlog.get_logger()

router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


@router.get("/admins")
async def list_admins(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return await AdminService(db).list_admins()


@router.post("/admins")
async def add_admin(
    body: AdminCreateRequest,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    new_admin = await AdminService(db).add_admin(body.user_id, body.username, body.role.value)
    await db.commit()
    logger.info("admin_added", user_id=body.user_id, by=admin.user_id)
    return {"success": True, "message": "Администратор добавлен", "admin": admin_to_dict(new_admin)}


@router.delete("/admins/{admin_user_id}")
async def remove_admin(
    admin_user_id: int,
    admin: Admin = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    await AdminService(db).remove_admin(admin_user_id, admin.user_id)
    await db.commit()
    logger.info("admin_removed", user_id=admin_user_id, by=admin.user_id)
    return {"success": True, "message": "Администратор удален"}


@router.get("/settings")
async def list_settings(db: AsyncSession = Depends(get_db)) -> list[dict[str, Any]]:
    return await AdminService(db).list_settings()


@router.put("/settings")
async def update_settings(body: SettingsUpdateRequest, db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    updated = await AdminService(db).update_settings([entry.model_dump() for entry in body.settings])
    await db.commit()
    logger.info("settings_updated", count=updated)
    return {"success": True, "updated": updated, "message": "Настройки сохранены"}


@router.get("/stats")
async def stats(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await AdminService(db).stats()


@router.get("/full-stats")
async def full_stats(db: AsyncSession = Depends(get_db)) -> dict[str, Any]:
    return await AdminService(db).full_stats()


@router.get("/users-report")
async def users_report(
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    """Registered users, most active first."""
    return await AdminService(db).users_report(limit)
