"""Admin gate for /api/admin routes."""

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workshop.admin.service import AdminService
from workshop.db.models import Admin
from workshop.dependencies import get_db


async def require_admin(
    user_id: int | None = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Resolve ``?userId=`` to an active admin or fail with 403."""
    admin = await AdminService(db).authenticate(user_id)
    await db.commit()
    return admin
